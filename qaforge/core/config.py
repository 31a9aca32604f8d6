"""Configuration management for QAForge."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError
from .models import EdgeCaseConfig


class AppConfig(BaseModel):
    """Target application configuration."""
    base_url: str
    api_base_url: Optional[str] = None


class LLMConfig(BaseModel):
    """LLM provider configuration."""
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_key_env: str = "OPENAI_API_KEY"
    local_model: str = "codellama:7b"
    local_base_url: str = "http://localhost:11434/v1"
    temperature: float = 0.1
    max_tokens: int = 4000
    failover_chain: list[str] = Field(
        default_factory=lambda: ["openai", "claude", "local"]
    )
    max_retries: int = 2


class GenerationConfig(BaseModel):
    """Test generation settings."""
    complexity: str = "intermediate"
    max_gui_tests: int = 25
    max_api_tests: int = 30
    include_edge_cases: bool = True
    expanded_fallback: bool = False
    focus: list[str] = Field(default_factory=list)


class OutputConfig(BaseModel):
    """Where generated suites and reports are written."""
    tests_dir: str = "./tests"
    reports_dir: str = "./reports"


class QAForgeConfig(BaseModel):
    """Main QAForge configuration."""
    app: AppConfig
    llm: LLMConfig = Field(default_factory=LLMConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    edge_cases: EdgeCaseConfig = Field(default_factory=EdgeCaseConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


DEFAULT_CONFIG_PATHS = [
    Path("qaforge.config.yaml"),
    Path("qaforge.config.yml"),
    Path(".qaforge.yaml"),
    Path.home() / ".qaforge.yaml",
]


def load_config(config_path: Optional[str] = None) -> QAForgeConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, searches default locations.

    Returns:
        QAForgeConfig instance.

    Raises:
        ConfigError: If no file is found or its content is invalid.
    """
    if config_path is None:
        for path in DEFAULT_CONFIG_PATHS:
            if path.exists():
                config_path = str(path)
                break

    if config_path and Path(config_path).exists():
        with open(config_path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {config_path} must be a mapping")
        try:
            return QAForgeConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    raise ConfigError(
        "No configuration file found. Create qaforge.config.yaml with at least:\n"
        "app:\n  base_url: https://your-app.com"
    )


def create_default_config(base_url: str, output_path: str = "qaforge.config.yaml") -> QAForgeConfig:
    """Create a default configuration file.

    Args:
        base_url: The target application URL.
        output_path: Where to save the config file.

    Returns:
        The created QAForgeConfig.
    """
    config = QAForgeConfig(app=AppConfig(base_url=base_url))

    with open(output_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)

    return config
