"""Recovery of JSON documents from free-form LLM responses."""

import json
import logging
import re
from typing import Any, Callable, Optional

from ..core.errors import JSONExtractionError

logger = logging.getLogger(__name__)

CODE_FENCE = re.compile(r"```(?:json|JSON)?\s*")


def _strip_fences(text: str) -> Optional[str]:
    stripped = CODE_FENCE.sub("", text).strip()
    return stripped if stripped != text else None


def _outermost(text: str, opening: str, closing: str) -> Optional[str]:
    start = text.find(opening)
    end = text.rfind(closing)
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _outermost_document(text: str) -> Optional[str]:
    """Isolate the outermost array or object, whichever starts first."""
    candidates = [
        span for span in (_outermost(text, "[", "]"), _outermost(text, "{", "}")) if span
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda span: text.find(span))


def _strip_junk(text: str) -> Optional[str]:
    """Drop leading and trailing text that cannot belong to a document."""
    stripped = re.sub(r"^[^\[{]*", "", text)
    stripped = re.sub(r"[^\]}]*$", "", stripped)
    return stripped or None


STRATEGIES: list[tuple[str, Callable[[str], Optional[str]]]] = [
    ("direct", lambda text: text),
    ("code fence", _strip_fences),
    ("outermost document", _outermost_document),
    ("junk strip", lambda text: _strip_junk(CODE_FENCE.sub("", text))),
]


def extract_json(text: str) -> Any:
    """Parse the JSON document contained in an LLM response.

    Strategies are tried in order: direct parse, code-fence removal,
    isolation of the outermost array or object, and removal of leading and
    trailing text.

    Args:
        text: Raw response text.

    Returns:
        The parsed document.

    Raises:
        JSONExtractionError: If no strategy yields valid JSON.
    """
    text = (text or "").strip()
    for name, strategy in STRATEGIES:
        candidate = strategy(text)
        if not candidate:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            logger.debug(f"JSON extraction strategy '{name}' failed")

    raise JSONExtractionError(f"No JSON document found in response: {text[:100]!r}")


def fallback_payload(prompt: str) -> Any:
    """Minimal response used when nothing could be recovered.

    The payload mirrors the kind of request the prompt makes, so the
    generators receive ordinary input and validate it like any other batch.
    """
    if "API test" in prompt:
        return [{
            "id": "fallback-api-1",
            "name": "Fallback API Test",
            "description": "Generated fallback API test case",
            "method": "GET",
            "endpoint": "/api/test",
            "expectedStatus": 200,
            "assertions": [{"type": "status", "expected": 200, "description": "Should return 200 OK"}],
            "tags": ["fallback", "api"],
            "priority": "medium",
        }]
    if "GUI test" in prompt or "test case" in prompt:
        return [{
            "id": "fallback-test-1",
            "name": "Fallback Test Case",
            "description": "Generated fallback test case",
            "steps": [{"action": "goto", "description": "Navigate to the application"}],
            "assertions": [{"type": "visible", "description": "Page should be visible"}],
            "tags": ["fallback", "gui"],
            "priority": "medium",
        }]
    return {"message": "Fallback response generated"}
