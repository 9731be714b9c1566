"""Sealed, checksummed whistleblowing submissions."""

__version__ = "0.1.0"
