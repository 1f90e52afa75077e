"""Local file context gathering."""

from .collector import FileContextCollector

__all__ = ["FileContextCollector"]
