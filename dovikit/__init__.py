"""Dolby Vision RPU header, mapping, NLQ and DM data structures, ST 2094-10 metadata and madVR measurement files."""

__version__ = "0.1.0"