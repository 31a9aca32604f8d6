"""Normalization of untrusted LLM output into well-formed test cases.

Every public function here is total: malformed input is skipped, defaulted
or coerced, never raised. Parsing a single case yields either ``Accepted``
or ``Rejected`` so callers can decide how to report skipped elements.
"""

import logging
from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar, Union
from urllib.parse import urlsplit

from pydantic import ValidationError

from ..core.models import (
    ApiAssertion,
    ApiAssertionType,
    ApiSubRequest,
    ApiTestCase,
    Assertion,
    AssertionOperator,
    AssertionType,
    CaseData,
    GenerationOptions,
    GuiTestCase,
    HttpMethod,
    Priority,
    Step,
    StepAction,
    StepOptions,
    WaitCondition,
)
from .dedup import ensure_unique_id

logger = logging.getLogger(__name__)

DEFAULT_MAX_GUI_TESTS = 25
DEFAULT_MAX_API_TESTS = 30
DEFAULT_STEP_TIMEOUT_MS = 10000
DEFAULT_ASSERTION_TIMEOUT_MS = 5000
MIN_DESCRIPTION_LENGTH = 10

CaseT = TypeVar("CaseT", GuiTestCase, ApiTestCase)
EnumT = TypeVar("EnumT", bound=Enum)


@dataclass(frozen=True)
class Accepted(Generic[CaseT]):
    """A raw element that produced a valid test case."""
    case: CaseT


@dataclass(frozen=True)
class Rejected:
    """A raw element that lacks the fields needed to build a test case."""
    reason: str


ValidationOutcome = Union[Accepted, Rejected]


# --- Field coercion ---------------------------------------------------------


def _text(value: Any) -> Optional[str]:
    """Return a stripped string for scalar values, None otherwise."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value).strip()
    return text or None


def _coerce_enum(enum_cls: type[EnumT], value: Any, default: Optional[EnumT]) -> Optional[EnumT]:
    """Map a raw value onto an enum member, falling back to ``default``."""
    text = _text(value)
    if text is not None:
        for candidate in (text, text.lower(), text.upper()):
            try:
                return enum_cls(candidate)
            except ValueError:
                continue
        logger.debug(f"Unknown {enum_cls.__name__} value {text!r}, using {default}")
    return default


def _coerce_int(value: Any, default: Optional[int], minimum: Optional[int] = None) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    if minimum is not None and number < minimum:
        return default
    return number


def _string_list(value: Any, unique: bool = False) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items = [text for text in (_text(item) for item in value) if text]
    if unique:
        return list(dict.fromkeys(items))
    return items


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    result = {}
    for key, item in value.items():
        text = _text(item)
        if text is not None:
            result[str(key)] = text
    return result


def _field(raw: dict, name: str, snake_name: Optional[str] = None) -> Any:
    """Read a camelCase field, accepting its snake_case spelling as well."""
    if name in raw:
        return raw[name]
    if snake_name:
        return raw.get(snake_name)
    return None


def _description(raw: dict, name: str) -> str:
    description = _text(raw.get("description"))
    if not description or len(description) < MIN_DESCRIPTION_LENGTH:
        return f"Automated test: {name}"
    return description


def default_status_for(method: HttpMethod) -> int:
    """Expected status of a successful request with the given method."""
    if method == HttpMethod.POST:
        return 201
    if method == HttpMethod.DELETE:
        return 204
    return 200


def normalize_endpoint(endpoint: str) -> str:
    """Strip scheme and host from an endpoint and ensure a leading slash.

    >>> normalize_endpoint("https://api.example.com/users?page=2")
    '/users?page=2'
    """
    endpoint = endpoint.strip()
    try:
        parts = urlsplit(endpoint)
    except ValueError:
        logger.debug(f"Unparseable endpoint {endpoint!r}, keeping it as a path")
        parts = None
    if parts and parts.netloc and (parts.scheme or endpoint.startswith("//")):
        endpoint = parts.path or "/"
        if parts.query:
            endpoint = f"{endpoint}?{parts.query}"
    if not endpoint.startswith("/"):
        endpoint = f"/{endpoint}"
    return endpoint


# --- Steps and assertions ---------------------------------------------------


def _step_options(raw: Any) -> StepOptions:
    raw = raw if isinstance(raw, dict) else {}
    extras = {
        str(key): value for key, value in raw.items()
        if key not in ("timeout", "force")
    }
    return StepOptions.model_validate({
        **extras,
        "timeout": _coerce_int(raw.get("timeout"), DEFAULT_STEP_TIMEOUT_MS, minimum=0),
        "force": raw.get("force") is True,
    })


def validate_step(raw: Any, position: int) -> Optional[Step]:
    """Build a Step from untrusted data.

    Args:
        raw: Raw step object.
        position: 1-based position of the step in its list.

    Returns:
        The normalized step, or None if ``raw`` is not an object.
    """
    if not isinstance(raw, dict):
        logger.debug(f"Dropping non-object step at position {position}")
        return None

    retry = raw.get("retry")
    return Step(
        action=_coerce_enum(StepAction, raw.get("action"), StepAction.CLICK),
        selector=_text(raw.get("selector")),
        value=_text(raw.get("value")),
        options=_step_options(raw.get("options")),
        wait_for=_coerce_enum(WaitCondition, _field(raw, "waitFor", "wait_for"), None),
        retry=retry if isinstance(retry, bool) else None,
        description=_text(raw.get("description")) or f"Step {position}",
    )


def validate_steps(raw_steps: Any) -> list[Step]:
    """Validate a list of raw steps, dropping entries that are not objects."""
    if not isinstance(raw_steps, list):
        return []
    steps = (validate_step(raw, position) for position, raw in enumerate(raw_steps, start=1))
    return [step for step in steps if step is not None]


def validate_assertion(raw: Any, position: int) -> Optional[Assertion]:
    """Build a GUI Assertion from untrusted data."""
    if not isinstance(raw, dict):
        return None

    assertion_type = _coerce_enum(AssertionType, raw.get("type"), AssertionType.VISIBLE)
    if "expected" in raw:
        expected = raw["expected"]
    else:
        expected = True if assertion_type == AssertionType.VISIBLE else None

    retry = raw.get("retry")
    return Assertion(
        type=assertion_type,
        selector=_text(raw.get("selector")),
        attribute=_text(raw.get("attribute")),
        expected=expected,
        operator=_coerce_enum(AssertionOperator, raw.get("operator"), AssertionOperator.EQUALS),
        timeout=_coerce_int(raw.get("timeout"), DEFAULT_ASSERTION_TIMEOUT_MS, minimum=0),
        retry=retry if isinstance(retry, bool) else True,
        description=_text(raw.get("description")) or f"Assertion {position}",
    )


def validate_api_assertion(raw: Any, position: int) -> Optional[ApiAssertion]:
    """Build an ApiAssertion from untrusted data."""
    if not isinstance(raw, dict):
        return None

    return ApiAssertion(
        type=_coerce_enum(ApiAssertionType, raw.get("type"), ApiAssertionType.BODY),
        path=_text(raw.get("path")),
        expected=raw.get("expected"),
        operator=_coerce_enum(AssertionOperator, raw.get("operator"), AssertionOperator.EQUALS),
        timeout=_coerce_int(raw.get("timeout"), None, minimum=0),
        description=_text(raw.get("description")) or f"Assertion {position}",
    )


def _validate_all(raw_items: Any, validate: Callable[[Any, int], Any]) -> list:
    if not isinstance(raw_items, list):
        return []
    items = (validate(raw, position) for position, raw in enumerate(raw_items, start=1))
    return [item for item in items if item is not None]


def ensure_navigation(steps: list[Step], app_url: str) -> list[Step]:
    """Make sure a GUI case starts from the application.

    Empty ``goto`` values are pointed at ``app_url``. When the case has no
    ``goto`` step at all, one is prepended.
    """
    target = app_url or "/"
    steps = [
        step.model_copy(update={"value": target})
        if step.action == StepAction.GOTO and not step.value else step
        for step in steps
    ]
    if any(step.action == StepAction.GOTO for step in steps):
        return steps

    navigate = Step(
        action=StepAction.GOTO,
        value=target,
        wait_for=WaitCondition.NETWORKIDLE,
        description="Navigate to application",
    )
    return [navigate] + steps


# --- GUI test cases ---------------------------------------------------------


def _missing_fields(raw: dict, fields: tuple[str, ...]) -> list[str]:
    return [name for name in fields if _text(raw.get(name)) is None]


def _case_data(raw: Any) -> Optional[CaseData]:
    if not isinstance(raw, dict):
        return None
    inputs = raw.get("inputs")
    outputs = _field(raw, "expectedOutputs", "expected_outputs")
    return CaseData(
        inputs=inputs if isinstance(inputs, dict) else None,
        expected_outputs=outputs if isinstance(outputs, dict) else None,
    )


def parse_gui_test_case(
    raw: Any,
    options: GenerationOptions,
    taken_ids: Collection[str]
) -> ValidationOutcome:
    """Parse one untrusted GUI test case.

    Args:
        raw: Raw element from the LLM response.
        options: Generation options (application URL).
        taken_ids: Ids already assigned in this collection.

    Returns:
        Accepted with the normalized case, or Rejected with a reason.
    """
    if not isinstance(raw, dict):
        return Rejected(f"expected an object, got {type(raw).__name__}")

    missing = _missing_fields(raw, ("id", "name"))
    raw_steps = raw.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        missing.append("steps")
    if missing:
        return Rejected(f"missing required fields: {', '.join(missing)}")

    name = _text(raw["name"])
    raw_cleanup = raw.get("cleanup")

    try:
        case = GuiTestCase(
            id=ensure_unique_id(_text(raw["id"]), taken_ids),
            name=name,
            description=_description(raw, name),
            category=(_text(raw.get("category")) or "functional").lower(),
            priority=_coerce_enum(Priority, raw.get("priority"), Priority.MEDIUM),
            estimated_duration=_text(_field(raw, "estimatedDuration", "estimated_duration")) or "30s",
            tags=_string_list(raw.get("tags"), unique=True),
            prerequisites=_string_list(raw.get("prerequisites")),
            test_data=_case_data(_field(raw, "testData", "test_data")),
            steps=ensure_navigation(validate_steps(raw_steps), options.app_url),
            assertions=_validate_all(raw.get("assertions"), validate_assertion),
            cleanup=validate_steps(raw_cleanup) if isinstance(raw_cleanup, list) else None,
        )
    except ValidationError as e:
        return Rejected(f"invalid test case: {e.error_count()} field errors")

    return Accepted(case)


# --- API test cases ---------------------------------------------------------


def _sub_requests(raw: Any, prefix: str) -> Optional[dict[str, ApiSubRequest]]:
    """Normalize dataSetup / dataCleanup operations keyed by name."""
    if isinstance(raw, list):
        raw = {f"{prefix}-{index}": item for index, item in enumerate(raw, start=1)}
    if not isinstance(raw, dict):
        return None

    operations = {}
    for name, item in raw.items():
        if not isinstance(item, dict):
            continue
        endpoint = _text(item.get("endpoint"))
        method = _coerce_enum(HttpMethod, item.get("method"), None)
        if endpoint is None or method is None:
            logger.debug(f"Dropping incomplete {prefix} operation {name!r}")
            continue
        headers = _string_map(item.get("headers"))
        operations[str(name)] = ApiSubRequest(
            endpoint=normalize_endpoint(endpoint),
            method=method,
            body=item.get("body"),
            headers=headers or None,
        )
    return operations or None


def parse_api_test_case(
    raw: Any,
    options: GenerationOptions,
    taken_ids: Collection[str]
) -> ValidationOutcome:
    """Parse one untrusted API test case.

    Args:
        raw: Raw element from the LLM response.
        options: Generation options.
        taken_ids: Ids already assigned in this collection.

    Returns:
        Accepted with the normalized case, or Rejected with a reason.
    """
    if not isinstance(raw, dict):
        return Rejected(f"expected an object, got {type(raw).__name__}")

    missing = _missing_fields(raw, ("id", "name", "method", "endpoint"))
    if missing:
        return Rejected(f"missing required fields: {', '.join(missing)}")

    name = _text(raw["name"])
    method = _coerce_enum(HttpMethod, raw["method"], None)
    if method is None:
        logger.warning(f"Unsupported HTTP method {raw['method']!r} in {raw['id']!r}, using GET")
        method = HttpMethod.GET

    expected_status = _coerce_int(_field(raw, "expectedStatus", "expected_status"), None)
    if expected_status is None or not 100 <= expected_status <= 599:
        expected_status = default_status_for(method)

    assertions = _validate_all(raw.get("assertions"), validate_api_assertion)
    if not any(a.type == ApiAssertionType.STATUS for a in assertions):
        assertions.insert(0, ApiAssertion(
            type=ApiAssertionType.STATUS,
            expected=expected_status,
            description=f"Should return {expected_status}",
        ))

    extraction = _string_map(_field(raw, "variableExtraction", "variable_extraction"))

    try:
        case = ApiTestCase(
            id=ensure_unique_id(_text(raw["id"]), taken_ids),
            name=name,
            description=_description(raw, name),
            category=(_text(raw.get("category")) or "functional").lower(),
            priority=_coerce_enum(Priority, raw.get("priority"), Priority.MEDIUM),
            estimated_duration=_text(_field(raw, "estimatedDuration", "estimated_duration")) or "1s",
            tags=_string_list(raw.get("tags"), unique=True),
            prerequisites=_string_list(raw.get("prerequisites")),
            method=method,
            endpoint=normalize_endpoint(_text(raw["endpoint"])),
            headers=_string_map(raw.get("headers")),
            body=raw.get("body"),
            query_params=_string_map(_field(raw, "queryParams", "query_params")),
            expected_status=expected_status,
            expected_response=_field(raw, "expectedResponse", "expected_response"),
            assertions=assertions,
            dependencies=_string_list(raw.get("dependencies")),
            data_setup=_sub_requests(_field(raw, "dataSetup", "data_setup"), "setup"),
            data_cleanup=_sub_requests(_field(raw, "dataCleanup", "data_cleanup"), "cleanup"),
            variable_extraction=extraction or None,
        )
    except ValidationError as e:
        return Rejected(f"invalid test case: {e.error_count()} field errors")

    return Accepted(case)


# --- Batches ----------------------------------------------------------------


def extract_case_list(response: Any) -> Optional[list]:
    """Return the list of raw cases in an LLM response, or None.

    A bare list is used as is. An object wrapping the list under ``tests``
    or ``testCases`` is unwrapped. Anything else has no usable cases.
    """
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        for key in ("tests", "testCases"):
            if isinstance(response.get(key), list):
                return response[key]
    return None


def _validate_batch(
    raw_cases: Any,
    parse: Callable[[Any, GenerationOptions, Collection[str]], ValidationOutcome],
    options: GenerationOptions,
    limit: int,
    existing_ids: Collection[str],
    kind: str
) -> list:
    if not isinstance(raw_cases, list):
        logger.warning(f"Expected a list of {kind} test cases, got {type(raw_cases).__name__}")
        return []

    taken = set(existing_ids)
    cases = []
    for index, raw in enumerate(raw_cases):
        if len(cases) >= limit:
            logger.info(f"Reached the limit of {limit} {kind} test cases")
            break

        outcome = parse(raw, options, taken)
        if isinstance(outcome, Rejected):
            logger.warning(f"Skipping {kind} test case #{index}: {outcome.reason}")
            continue

        taken.add(outcome.case.id)
        cases.append(outcome.case)

    return cases


def validate_gui_test_cases(
    raw_cases: Any,
    options: Optional[GenerationOptions] = None,
    existing_ids: Collection[str] = ()
) -> list[GuiTestCase]:
    """Validate a batch of untrusted GUI test cases.

    Args:
        raw_cases: Parsed LLM response, expected to be a list.
        options: Application URL and maximum number of cases (default 25).
        existing_ids: Ids already present in the collection.

    Returns:
        Normalized cases in input order, with unique ids.
    """
    options = options or GenerationOptions()
    limit = DEFAULT_MAX_GUI_TESTS if options.max_test_cases is None else options.max_test_cases
    return _validate_batch(raw_cases, parse_gui_test_case, options, limit, existing_ids, "GUI")


def validate_api_test_cases(
    raw_cases: Any,
    options: Optional[GenerationOptions] = None,
    existing_ids: Collection[str] = ()
) -> list[ApiTestCase]:
    """Validate a batch of untrusted API test cases.

    Args:
        raw_cases: Parsed LLM response, expected to be a list.
        options: Maximum number of cases (default 30).
        existing_ids: Ids already present in the collection.

    Returns:
        Normalized cases in input order, with unique ids.
    """
    options = options or GenerationOptions()
    limit = DEFAULT_MAX_API_TESTS if options.max_test_cases is None else options.max_test_cases
    return _validate_batch(raw_cases, parse_api_test_case, options, limit, existing_ids, "API")
