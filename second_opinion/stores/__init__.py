"""Persistent stores."""

from .archive import ResponseArchiver

__all__ = ["ResponseArchiver"]
