"""Page inspection for QAForge."""

from .inspector import PageInspector

__all__ = ["PageInspector"]
