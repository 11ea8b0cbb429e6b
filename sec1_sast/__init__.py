"""Sec1 SAST scanner build step."""

__version__ = "0.1.0"
