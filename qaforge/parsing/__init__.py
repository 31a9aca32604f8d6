"""User journey parsing for QAForge."""

from .journey import JourneyParser

__all__ = ["JourneyParser"]
