"""LLM Engine with resilience and failover support."""

import logging
import os
import time
from typing import Any, Optional

from ..core.config import LLMConfig
from ..core.errors import JSONExtractionError, QAForgeError
from .json_extract import extract_json, fallback_payload

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = "\n\nPlease respond with valid JSON only. No additional text or formatting."

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "claude": "claude-sonnet-4-20250514",
}

API_KEY_ENVS = {
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
}


class LLMProviderError(QAForgeError):
    """Error from LLM provider."""
    pass


class AllProvidersFailedError(QAForgeError):
    """All LLM providers failed."""
    pass


class LLMEngine:
    """Resilient LLM engine with retry and failover support.

    Providers in ``failover_chain`` are tried in order. Each gets
    ``max_retries`` attempts with exponential backoff before the next one
    takes over.
    """

    def __init__(self, config: Optional[LLMConfig] = None):
        """Initialize the LLM engine.

        Args:
            config: LLM configuration. Uses defaults if not provided.
        """
        self.config = config or LLMConfig()
        self._clients: dict[str, Any] = {}

    def _get_client(self, provider: str) -> Any:
        """Get or create a client for a provider."""
        if provider not in self._clients:
            self._clients[provider] = self._create_client(provider)
        return self._clients[provider]

    def _model_for(self, provider: str) -> str:
        if provider == "local":
            return self.config.local_model
        if provider == self.config.provider:
            return self.config.model
        return DEFAULT_MODELS[provider]

    def _api_key_for(self, provider: str) -> Optional[str]:
        if provider == self.config.provider:
            return os.getenv(self.config.api_key_env)
        return os.getenv(API_KEY_ENVS[provider])

    def _create_client(self, provider: str) -> Any:
        """Create an API client wrapper for a provider.

        Args:
            provider: Provider name (openai, claude or local).

        Returns:
            Client wrapper.

        Raises:
            LLMProviderError: If the provider is unknown or misconfigured.
        """
        if provider == "local":
            # Ollama serves an OpenAI-compatible API
            return OpenAIWrapper(
                api_key="ollama",
                model=self._model_for(provider),
                base_url=self.config.local_base_url
            )

        if provider not in DEFAULT_MODELS:
            raise LLMProviderError(f"Unknown provider: {provider}")

        api_key = self._api_key_for(provider)
        if not api_key:
            raise LLMProviderError(f"No API key configured for {provider}")

        if provider == "claude":
            return AnthropicWrapper(api_key=api_key, model=self._model_for(provider))
        return OpenAIWrapper(api_key=api_key, model=self._model_for(provider))

    def complete(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ) -> str:
        """Complete a prompt with retry and failover.

        Args:
            prompt: The prompt text.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.

        Returns:
            Generated text.

        Raises:
            AllProvidersFailedError: If all providers fail.
        """
        max_tokens = max_tokens or self.config.max_tokens
        if temperature is None:
            temperature = self.config.temperature

        for provider in self.config.failover_chain:
            for attempt in range(self.config.max_retries):
                try:
                    client = self._get_client(provider)
                    return client.complete(
                        prompt,
                        max_tokens=max_tokens,
                        temperature=temperature
                    )

                except LLMProviderError as e:
                    logger.warning(f"Skipping {provider}: {e}")
                    break

                except Exception as e:
                    logger.warning(f"{provider} attempt {attempt + 1} failed: {e}")
                    if attempt < self.config.max_retries - 1:
                        time.sleep(2 ** attempt)  # Exponential backoff
                    else:
                        logger.error(f"{provider} failed after {self.config.max_retries} retries")

        raise AllProvidersFailedError("All LLM providers failed")

    def generate_json(self, prompt: str) -> Any:
        """Ask for a JSON response and parse it.

        The result is untrusted: it may be any JSON value. When no document
        can be recovered from the response, a minimal synthesized payload
        matching the prompt is returned instead.

        Raises:
            AllProvidersFailedError: If all providers fail.
        """
        full_prompt = prompt + JSON_INSTRUCTION
        response = self.complete(full_prompt)

        try:
            return extract_json(response)
        except JSONExtractionError as e:
            logger.warning(f"{e}; using fallback payload")
            return fallback_payload(prompt)


class AnthropicWrapper:
    """Wrapper for direct Anthropic API calls."""

    def __init__(self, api_key: str, model: str):
        import anthropic
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model

    def complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        message = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}]
        )
        return message.content[0].text


class OpenAIWrapper:
    """Wrapper for OpenAI-compatible chat completion APIs."""

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None):
        import openai
        self.client = openai.OpenAI(api_key=api_key, base_url=base_url)
        self.model = model

    def complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}]
        )
        return response.choices[0].message.content or ""
