import unittest

from docs_browser.archive.mirrors import MirrorClient
from docs_browser.archive.resolver import VersionMemo, VersionResolver, extract_release
from tests.support import UNREACHABLE_MIRROR, FakeClock, FakeMirror, metadata_xml

METADATA = "g/a/maven-metadata.xml"


class VersionResolverTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.clock = FakeClock()
        self.client = MirrorClient(timeout_seconds=5)
        await self.client.start()
        self._mirrors: list[FakeMirror] = []

    async def asyncTearDown(self) -> None:
        await self.client.stop()
        for mirror in self._mirrors:
            await mirror.close()

    async def _mirror(self, files=None) -> FakeMirror:
        mirror = await FakeMirror(files).start()
        self._mirrors.append(mirror)
        return mirror

    def _resolver(self, *urls: str, ttl_seconds: float = 1800.0) -> VersionResolver:
        memo = VersionMemo(ttl_seconds=ttl_seconds, max_entries=1000, timer=self.clock)
        return VersionResolver(client=self.client, mirrors=urls, memo=memo)

    async def test_transport_failure_falls_through_to_next_mirror(self) -> None:
        m1 = await self._mirror()
        m2 = await self._mirror({METADATA: metadata_xml("2.3")})
        resolver = self._resolver(UNREACHABLE_MIRROR, m1.url, m2.url)

        version = await resolver.resolve("g", "a")

        self.assertEqual(version, "2.3")
        self.assertEqual(m1.requests, ["/g/a/maven-metadata.xml"])
        self.assertEqual(m2.requests, ["/g/a/maven-metadata.xml"])

    async def test_reachable_mirror_without_release_ends_the_search(self) -> None:
        m1 = await self._mirror({METADATA: metadata_xml(None)})
        m2 = await self._mirror({METADATA: metadata_xml("2.3")})
        resolver = self._resolver(m1.url, m2.url)

        version = await resolver.resolve("g", "a")

        self.assertEqual(version, "LATEST")
        self.assertEqual(m2.requests, [])

    async def test_memoized_version_is_reused_until_ttl_elapses(self) -> None:
        mirror = await self._mirror({METADATA: metadata_xml("1.0")})
        resolver = self._resolver(mirror.url, ttl_seconds=1800.0)

        self.assertEqual(await resolver.resolve("g", "a"), "1.0")
        mirror.files[METADATA] = metadata_xml("2.0")

        self.clock.now += 1800.0 - 0.5
        self.assertEqual(await resolver.resolve("g", "a"), "1.0")
        self.assertEqual(len(mirror.requests), 1)

        self.clock.now += 1.0
        self.assertEqual(await resolver.resolve("g", "a"), "2.0")
        self.assertEqual(len(mirror.requests), 2)

    async def test_unresolved_placeholder_is_not_memoized(self) -> None:
        mirror = await self._mirror()
        resolver = self._resolver(mirror.url)

        self.assertEqual(await resolver.resolve("g", "a"), "LATEST")
        mirror.files[METADATA] = metadata_xml("3.1")
        self.assertEqual(await resolver.resolve("g", "a"), "3.1")

    async def test_dotted_group_becomes_nested_remote_path(self) -> None:
        mirror = await self._mirror({"org/example/lib/maven-metadata.xml": metadata_xml("0.9")})
        resolver = self._resolver(mirror.url)

        self.assertEqual(await resolver.resolve("org.example", "lib"), "0.9")
        self.assertEqual(mirror.requests, ["/org/example/lib/maven-metadata.xml"])

    async def test_metadata_path_segments_are_percent_encoded(self) -> None:
        m1 = await self._mirror({"g": b"<html>directory listing</html>"})
        m2 = await self._mirror({"g#x/a?b/maven-metadata.xml": metadata_xml("4.2")})
        resolver = self._resolver(m1.url, m2.url)

        self.assertEqual(await resolver.resolve("g#x", "a?b"), "4.2")
        self.assertEqual(m1.requests, ["/g#x/a?b/maven-metadata.xml"])
        self.assertEqual(m2.requests, ["/g#x/a?b/maven-metadata.xml"])

    async def test_memo_is_keyed_by_group_and_artifact(self) -> None:
        mirror = await self._mirror(
            {
                METADATA: metadata_xml("1.0"),
                "g/b/maven-metadata.xml": metadata_xml("5.0"),
            }
        )
        resolver = self._resolver(mirror.url)

        self.assertEqual(await resolver.resolve("g", "a"), "1.0")
        self.assertEqual(await resolver.resolve("g", "b"), "5.0")
        self.assertEqual(await resolver.resolve("g", "a"), "1.0")
        self.assertEqual(len(mirror.requests), 2)


class VersionMemoTests(unittest.TestCase):
    def test_least_recently_used_entry_is_evicted(self) -> None:
        memo = VersionMemo(ttl_seconds=60, max_entries=2, timer=FakeClock())
        memo.put("g:a", "1")
        memo.put("g:b", "2")
        self.assertEqual(memo.get("g:a"), "1")

        memo.put("g:c", "3")

        self.assertEqual(memo.get("g:a"), "1")
        self.assertIsNone(memo.get("g:b"))
        self.assertEqual(memo.get("g:c"), "3")
        self.assertEqual(len(memo), 2)

    def test_entries_expire_after_ttl(self) -> None:
        clock = FakeClock()
        memo = VersionMemo(ttl_seconds=10, max_entries=5, timer=clock)
        memo.put("g:a", "1")

        clock.now += 11
        self.assertIsNone(memo.get("g:a"))
        self.assertEqual(len(memo), 0)


class ExtractReleaseTests(unittest.TestCase):
    def test_first_release_element_wins(self) -> None:
        text = "<release>1.2</release><release>9.9</release>"
        self.assertEqual(extract_release(text), "1.2")

    def test_release_element_with_attributes(self) -> None:
        self.assertEqual(extract_release('<metadata><release kind="final">4.5.6</release></metadata>'), "4.5.6")

    def test_missing_or_empty_release(self) -> None:
        self.assertIsNone(extract_release("<metadata><latest>1.0</latest></metadata>"))
        self.assertIsNone(extract_release("<release></release>"))


if __name__ == "__main__":
    unittest.main()
