"""Prompt composition."""

from .composer import compose

__all__ = ["compose"]
