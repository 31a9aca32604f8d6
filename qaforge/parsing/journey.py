"""User journey parsing from JSON, YAML or free-form text."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from ..core.errors import JourneyParseError
from ..core.models import JourneyEndpoint, JourneyScenario, JourneyStep, UserJourney
from ..generation.prompts import build_journey_prompt
from ..llm.engine import AllProvidersFailedError, LLMEngine

logger = logging.getLogger(__name__)

API_CALL = re.compile(r"^\s*([A-Za-z]+)\s+(\S+)")


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class JourneyParser:
    """Turns journey files into UserJourney models.

    JSON and YAML files are parsed directly. Markdown, plain text and any
    other format are converted to JSON by the LLM first.
    """

    def __init__(self, llm_engine: Optional[LLMEngine] = None):
        self.llm = llm_engine

    def parse_file(self, path: str) -> UserJourney:
        """Parse a journey file.

        Args:
            path: Path to a .json, .yaml/.yml, .md/.txt or other text file.

        Returns:
            Normalized user journey.

        Raises:
            JourneyParseError: If the file cannot be read or parsed.
        """
        file_path = Path(path)
        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise JourneyParseError(f"Cannot read journey file {path}: {e}") from e

        suffix = file_path.suffix.lower()
        if suffix == ".json":
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                raise JourneyParseError(f"Invalid JSON in {path}: {e}") from e
        elif suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as e:
                raise JourneyParseError(f"Invalid YAML in {path}: {e}") from e
        else:
            data = self._parse_with_llm(content)

        return self.normalize(data, default_id=f"journey-{file_path.stem}")

    def parse_text(self, text: str, default_id: str = "journey") -> UserJourney:
        """Parse a free-form journey description with the LLM."""
        return self.normalize(self._parse_with_llm(text), default_id=default_id)

    def _parse_with_llm(self, content: str) -> Any:
        if self.llm is None:
            raise JourneyParseError("An LLM engine is required to parse free-form journeys")
        try:
            return self.llm.generate_json(build_journey_prompt(content))
        except AllProvidersFailedError as e:
            raise JourneyParseError(f"Journey conversion failed: {e}") from e

    def normalize(self, data: Any, default_id: str = "journey") -> UserJourney:
        """Fill defaults and derive missing endpoints and scenarios.

        Raises:
            JourneyParseError: If ``data`` is not an object.
        """
        if not isinstance(data, dict):
            raise JourneyParseError(f"Journey must be an object, got {type(data).__name__}")

        steps = self._steps(data.get("steps"))
        endpoints = self._endpoints(data.get("apiEndpoints")) or self._endpoints_from_steps(steps)
        scenarios = self._scenarios(data.get("testScenarios"))
        if not scenarios and steps:
            scenarios = [JourneyScenario(
                name="Complete journey",
                type="happy_path",
                steps=[step.id for step in steps],
                assertions=[step.expected for step in steps if step.expected],
            )]

        return UserJourney(
            id=str(data.get("id") or default_id),
            title=str(data.get("title") or "User Journey"),
            description=str(data.get("description") or "Generated user journey"),
            steps=steps,
            api_endpoints=endpoints,
            test_scenarios=scenarios,
        )

    @staticmethod
    def _steps(raw_steps: Any) -> list[JourneyStep]:
        if not isinstance(raw_steps, list):
            return []

        steps = []
        for position, raw in enumerate(raw_steps, start=1):
            if isinstance(raw, str):
                raw = {"action": raw}
            if not isinstance(raw, dict) or not raw.get("action"):
                logger.debug(f"Skipping journey step {position} without an action")
                continue

            api_calls = raw.get("apiCalls") or []
            if isinstance(api_calls, str):
                api_calls = [api_calls]
            steps.append(JourneyStep(
                id=str(raw.get("id") or f"step-{position}"),
                action=str(raw["action"]),
                element=_optional_text(raw.get("element")),
                input=_optional_text(raw.get("input")),
                expected=_optional_text(raw.get("expected")),
                screenshot=raw.get("screenshot") is True,
                api_calls=[str(call) for call in api_calls],
            ))
        return steps

    @staticmethod
    def _endpoints(raw_endpoints: Any) -> list[JourneyEndpoint]:
        if not isinstance(raw_endpoints, list):
            return []

        endpoints = []
        for raw in raw_endpoints:
            if not isinstance(raw, dict) or not raw.get("method") or not raw.get("path"):
                continue
            try:
                endpoints.append(JourneyEndpoint.model_validate({
                    **raw,
                    "method": str(raw["method"]).upper(),
                    "path": str(raw["path"]),
                    "description": str(raw.get("description") or ""),
                }))
            except ValidationError as e:
                logger.warning(f"Skipping journey endpoint {raw['method']} {raw['path']}: {e.error_count()} errors")
        return endpoints

    @staticmethod
    def _endpoints_from_steps(steps: list[JourneyStep]) -> list[JourneyEndpoint]:
        """Derive endpoints from ``METHOD /path`` entries in step api calls."""
        endpoints = []
        for step in steps:
            for call in step.api_calls:
                match = API_CALL.match(call)
                if match:
                    endpoints.append(JourneyEndpoint(
                        method=match.group(1).upper(),
                        path=match.group(2),
                        description=f"API call from step: {step.action}",
                    ))
        return endpoints

    @staticmethod
    def _scenarios(raw_scenarios: Any) -> list[JourneyScenario]:
        if not isinstance(raw_scenarios, list):
            return []

        scenarios = []
        for raw in raw_scenarios:
            if not isinstance(raw, dict) or not raw.get("name"):
                continue
            scenarios.append(JourneyScenario(
                name=str(raw["name"]),
                type=str(raw.get("type") or "happy_path"),
                steps=[str(step) for step in raw.get("steps") or [] if step is not None],
                assertions=[str(item) for item in raw.get("assertions") or [] if item is not None],
            ))
        return scenarios
