"""Exception hierarchy for QAForge."""


class QAForgeError(Exception):
    """Base class for QAForge errors."""
    pass


class ConfigError(QAForgeError):
    """Configuration could not be found or loaded."""
    pass


class JSONExtractionError(QAForgeError):
    """No JSON document could be recovered from an LLM response."""
    pass


class JourneyParseError(QAForgeError):
    """A user journey file could not be parsed."""
    pass
