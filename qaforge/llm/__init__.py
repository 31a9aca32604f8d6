"""LLM integration for QAForge."""

from .engine import LLMEngine, LLMProviderError, AllProvidersFailedError
from .json_extract import extract_json

__all__ = ["LLMEngine", "LLMProviderError", "AllProvidersFailedError", "extract_json"]
