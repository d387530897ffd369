"""Serve files out of documentation archives fetched from Maven-style repositories."""

__version__ = "0.1.0"
