"""Core data models for QAForge."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Priority(str, Enum):
    """Test case priority levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StepAction(str, Enum):
    """Browser actions a GUI step can perform."""
    GOTO = "goto"
    CLICK = "click"
    FILL = "fill"
    SELECT = "select"
    HOVER = "hover"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    SCROLL = "scroll"
    PRESS = "press"
    TYPE = "type"
    CHECK = "check"
    UNCHECK = "uncheck"


class WaitCondition(str, Enum):
    """Conditions a step waits for after running."""
    NETWORKIDLE = "networkidle"
    DOMCONTENTLOADED = "domcontentloaded"
    LOAD = "load"
    ELEMENT = "element"


class AssertionType(str, Enum):
    """Types of GUI assertions understood by the runner."""
    VISIBLE = "visible"
    TEXT = "text"
    VALUE = "value"
    URL = "url"
    COUNT = "count"
    ATTRIBUTE = "attribute"
    STYLE = "style"
    SCREENSHOT = "screenshot"


class AssertionOperator(str, Enum):
    """Comparison used when checking an assertion."""
    EQUALS = "equals"
    CONTAINS = "contains"
    MATCHES = "matches"
    EXISTS = "exists"
    GREATER = "greater"
    LESS = "less"


class HttpMethod(str, Enum):
    """HTTP methods supported by API test cases."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class ApiAssertionType(str, Enum):
    """Types of API assertions understood by the runner."""
    STATUS = "status"
    HEADER = "header"
    BODY = "body"
    SCHEMA = "schema"
    PERFORMANCE = "performance"
    SECURITY = "security"


class Severity(str, Enum):
    """Severity of a quality issue."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK: dict[Priority, int] = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}

SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary using the wire field names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# --- GUI test cases ---------------------------------------------------------


class StepOptions(CamelModel):
    """Per-step execution options. Unknown keys are kept for the runner."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    timeout: int = 10000
    force: bool = False


class Step(CamelModel):
    """A single browser step in a GUI test case."""
    action: StepAction
    selector: Optional[str] = None
    value: Optional[str] = None
    options: StepOptions = Field(default_factory=StepOptions)
    wait_for: Optional[WaitCondition] = None
    retry: Optional[bool] = None
    description: str


class Assertion(CamelModel):
    """A check performed after the steps of a GUI test case."""
    type: AssertionType
    selector: Optional[str] = None
    attribute: Optional[str] = None
    expected: Any = None
    operator: AssertionOperator = AssertionOperator.EQUALS
    timeout: int = 5000
    retry: bool = True
    description: str


class CaseData(CamelModel):
    """Inputs and expected outputs used by a test case."""
    inputs: Optional[dict[str, Any]] = None
    expected_outputs: Optional[dict[str, Any]] = None


class GuiTestCase(CamelModel):
    """A validated GUI test case."""
    id: str
    name: str
    description: str
    category: str = "functional"
    priority: Priority = Priority.MEDIUM
    estimated_duration: str = "30s"
    tags: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    test_data: Optional[CaseData] = None
    steps: list[Step]
    assertions: list[Assertion] = Field(default_factory=list)
    cleanup: Optional[list[Step]] = None


# --- API test cases ---------------------------------------------------------


class ApiAssertion(CamelModel):
    """A check performed against an API response."""
    type: ApiAssertionType
    path: Optional[str] = None
    expected: Any = None
    operator: AssertionOperator = AssertionOperator.EQUALS
    timeout: Optional[int] = None
    description: str


class ApiSubRequest(CamelModel):
    """A request run before or after the main request of an API test."""
    endpoint: str
    method: HttpMethod
    body: Any = None
    headers: Optional[dict[str, str]] = None


class ApiTestCase(CamelModel):
    """A validated API test case."""
    id: str
    name: str
    description: str
    category: str = "functional"
    priority: Priority = Priority.MEDIUM
    estimated_duration: str = "1s"
    tags: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    method: HttpMethod
    endpoint: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    query_params: dict[str, str] = Field(default_factory=dict)
    expected_status: int
    expected_response: Any = None
    assertions: list[ApiAssertion] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    data_setup: Optional[dict[str, ApiSubRequest]] = None
    data_cleanup: Optional[dict[str, ApiSubRequest]] = None
    variable_extraction: Optional[dict[str, str]] = None


# --- Structural facts -------------------------------------------------------


def _dict_items(value: Any) -> list[dict]:
    """Keep only the dictionary entries of an untrusted list."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


class InputInfo(CamelModel):
    """An input, select or textarea found on a page."""
    index: int = 0
    type: str = "text"
    name: Optional[str] = None
    id: Optional[str] = None
    placeholder: Optional[str] = None
    value: Optional[str] = None
    required: bool = False

    @field_validator("index", mode="before")
    @classmethod
    def _coerce_index(cls, v: Any) -> int:
        return _as_int(v)

    @field_validator("required", mode="before")
    @classmethod
    def _coerce_required(cls, v: Any) -> bool:
        return v is True or (isinstance(v, str) and v.lower() in ("true", "required"))

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, v: Any) -> str:
        return str(v).lower() if v else "text"

    @field_validator("name", "id", "placeholder", "value", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @property
    def label(self) -> str:
        """Human-readable field name."""
        return self.name or self.id or f"input {self.index}"

    @property
    def selector(self) -> str:
        """Locator for the field, by id when available."""
        if self.id:
            return f"#{self.id}"
        if self.name:
            return f'input[name="{self.name}"]'
        return f'input[type="{self.type}"]'


class FormInfo(CamelModel):
    """A form found on a page."""
    index: int = 0
    action: Optional[str] = None
    method: str = "GET"
    inputs: list[InputInfo] = Field(default_factory=list)

    @field_validator("inputs", mode="before")
    @classmethod
    def _coerce_inputs(cls, v: Any) -> list[dict]:
        return _dict_items(v)

    @field_validator("index", mode="before")
    @classmethod
    def _coerce_index(cls, v: Any) -> int:
        return _as_int(v)

    @field_validator("action", mode="before")
    @classmethod
    def _coerce_action(cls, v: Any) -> Optional[str]:
        return str(v) if v else None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: Any) -> str:
        return str(v).upper() if v else "GET"


class _ClickableInfo(CamelModel):
    index: int = 0
    text: Optional[str] = None
    id: Optional[str] = None
    class_name: Optional[str] = None

    @field_validator("index", mode="before")
    @classmethod
    def _coerce_index(cls, v: Any) -> int:
        return _as_int(v)

    @field_validator("text", "id", "class_name", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None


class LinkInfo(_ClickableInfo):
    """A hyperlink found on a page."""
    href: Optional[str] = None

    @field_validator("href", mode="before")
    @classmethod
    def _coerce_href(cls, v: Any) -> Optional[str]:
        return str(v) if v else None


class ButtonInfo(_ClickableInfo):
    """A button found on a page."""
    type: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> Optional[str]:
        return str(v) if v else None


class PageInfo(CamelModel):
    """Structure of a page as discovered by the page inspector."""
    title: str = ""
    url: str = ""
    forms: list[FormInfo] = Field(default_factory=list)
    buttons: list[ButtonInfo] = Field(default_factory=list)
    links: list[LinkInfo] = Field(default_factory=list)
    inputs: list[InputInfo] = Field(default_factory=list)

    @field_validator("forms", "buttons", "links", "inputs", mode="before")
    @classmethod
    def _coerce_lists(cls, v: Any) -> list[dict]:
        return _dict_items(v)

    @field_validator("title", "url", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class DiscoveredAPI(CamelModel):
    """An API call observed while browsing the application."""
    method: str = "GET"
    url: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    response: Any = None
    status: int = 200

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: Any) -> str:
        return str(v).upper() if v else "GET"

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, v: Any) -> dict[str, str]:
        if not isinstance(v, dict):
            return {}
        return {str(k): str(val) for k, val in v.items()}

    @field_validator("url", mode="before")
    @classmethod
    def _coerce_url(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> int:
        return _as_int(v, 200)


# --- User journeys ----------------------------------------------------------


class JourneyStep(CamelModel):
    """One user action in a journey."""
    id: str
    action: str
    element: Optional[str] = None
    input: Optional[str] = None
    expected: Optional[str] = None
    screenshot: bool = False
    api_calls: list[str] = Field(default_factory=list)


class JourneyEndpoint(CamelModel):
    """An API endpoint used by a journey."""
    method: str
    path: str
    description: str = ""
    request_body: Any = None
    expected_response: Any = None
    status_code: Optional[int] = None


class JourneyScenario(CamelModel):
    """A scenario derived from a journey."""
    name: str
    type: str = "happy_path"
    steps: list[str] = Field(default_factory=list)
    assertions: list[str] = Field(default_factory=list)


class UserJourney(CamelModel):
    """A structured user journey used as generation context."""
    id: str
    title: str
    description: str
    steps: list[JourneyStep] = Field(default_factory=list)
    api_endpoints: list[JourneyEndpoint] = Field(default_factory=list)
    test_scenarios: list[JourneyScenario] = Field(default_factory=list)


# --- Quality ----------------------------------------------------------------


class QualityIssue(CamelModel):
    """A single finding of the quality analyzer."""
    severity: Severity
    category: str
    test_id: str
    message: str
    suggestion: str


class QualityCategories(CamelModel):
    """Per-category quality scores."""
    completeness: int
    maintainability: int
    reliability: int
    coverage: int
    performance: int


class QualityScore(CamelModel):
    """Quality report for a test collection."""
    overall: int
    categories: QualityCategories
    issues: list[QualityIssue] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class CoverageAnalysis(CamelModel):
    """Share of the combined GUI and API suites per semantic category."""
    functional_coverage: int = 0
    error_coverage: int = 0
    edge_case_coverage: int = 0
    security_coverage: int = 0
    performance_coverage: int = 0
    accessibility_coverage: int = 0


# --- Generation settings ----------------------------------------------------


class GenerationOptions(BaseModel):
    """Options for a single validation pass."""
    app_url: str = ""
    max_test_cases: Optional[int] = None


class EdgeCaseConfig(BaseModel):
    """Which rule-based edge cases to synthesize."""
    include_security_tests: bool = True
    include_boundary_tests: bool = True
    include_data_validation_tests: bool = True
    include_performance_edge_cases: bool = True
    include_accessibility_tests: bool = True
    max_edge_cases: int = 30
    # Server-side cap assumed by the max-length probe.
    max_input_length: int = 255
