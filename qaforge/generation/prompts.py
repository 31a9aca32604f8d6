"""Prompt construction for GUI and API test generation."""

import json
import math
from collections import Counter
from typing import Optional, Sequence

from ..core.models import DiscoveredAPI, PageInfo, UserJourney

COMPLEXITY_LEVELS = ("basic", "intermediate", "advanced")

GUI_COMPLEXITY = {
    "basic": """## BASIC COMPLEXITY MODE
- Focus on smoke tests and critical user paths
- Prioritize high-impact, low-maintenance tests
- Keep assertions simple and reliable""",
    "intermediate": """## INTERMEDIATE COMPLEXITY MODE
- Balance coverage with maintainability
- Include happy paths, error cases, and key edge cases
- Focus on user-facing functionality and business logic""",
    "advanced": """## ADVANCED COMPLEXITY MODE
- Include comprehensive edge cases and error scenarios
- Add accessibility, performance, and security tests
- Include data-driven variations""",
}

API_COMPLEXITY = {
    "basic": """## BASIC API TESTING MODE
- Focus on CRUD operations and authentication
- Test happy paths and basic error scenarios
- Include basic validation and security tests""",
    "intermediate": """## INTERMEDIATE API TESTING MODE
- Balance comprehensive coverage with practicality
- Include authentication, validation, and error handling
- Focus on business logic and data integrity""",
    "advanced": """## ADVANCED API TESTING MODE
- Include comprehensive security and performance tests
- Include contract checks and integration workflows
- Chain requests with dataSetup, dependencies and variableExtraction""",
}

GUI_SCHEMA = """[
  {
    "id": "gui-[category]-[sequence]",
    "name": "Clear, descriptive test name",
    "description": "Detailed explanation of what this test validates",
    "category": "authentication|navigation|form|error|accessibility|performance",
    "priority": "critical|high|medium|low",
    "estimatedDuration": "30s|1m|2m|5m",
    "tags": ["smoke", "regression", "user-journey"],
    "prerequisites": ["Any required setup"],
    "testData": {"inputs": {"field": "value"}, "expectedOutputs": {"result": "value"}},
    "steps": [
      {
        "action": "goto|click|fill|select|hover|wait|screenshot|scroll|press|type|check|uncheck",
        "selector": "CSS selector or text-based locator",
        "value": "Input value if applicable",
        "options": {"timeout": 5000},
        "waitFor": "networkidle|domcontentloaded|load|element",
        "retry": true,
        "description": "Human-readable step description"
      }
    ],
    "assertions": [
      {
        "type": "visible|text|value|url|count|attribute|style|screenshot",
        "selector": "Element selector",
        "attribute": "Attribute name for attribute assertions",
        "expected": "Expected value",
        "operator": "equals|contains|matches|exists|greater|less",
        "description": "What this assertion validates"
      }
    ],
    "cleanup": [{"action": "click", "selector": "cleanup selector", "description": "Cleanup step"}]
  }
]"""

API_SCHEMA = """[
  {
    "id": "api-[category]-[sequence]",
    "name": "Clear, descriptive test name",
    "description": "Detailed explanation of what this test validates",
    "category": "authentication|crud|validation|security|performance|error",
    "priority": "critical|high|medium|low",
    "estimatedDuration": "500ms|1s|2s",
    "tags": ["smoke", "regression"],
    "method": "GET|POST|PUT|PATCH|DELETE",
    "endpoint": "/api/resource",
    "headers": {"Authorization": "Bearer {{authToken}}"},
    "body": {"field": "value"},
    "queryParams": {"page": "1"},
    "expectedStatus": 200,
    "assertions": [
      {
        "type": "status|header|body|schema|performance|security",
        "path": "data.id",
        "expected": "Expected value",
        "operator": "equals|contains|matches|exists|greater|less",
        "description": "What this assertion validates"
      }
    ],
    "dependencies": ["id of a test that must run first"],
    "dataSetup": {"createUser": {"endpoint": "/api/users", "method": "POST", "body": {}}},
    "dataCleanup": {"deleteUser": {"endpoint": "/api/users/{{userId}}", "method": "DELETE"}},
    "variableExtraction": {"userId": "data.id"}
  }
]"""


def _complexity(complexity: str) -> str:
    return complexity if complexity in COMPLEXITY_LEVELS else "intermediate"


def gui_test_count(complexity: str, page_info: Optional[PageInfo]) -> int:
    """Number of GUI cases to ask for, scaled by page size."""
    base = 3
    if page_info is not None:
        base += len(page_info.forms) + len(page_info.buttons)

    complexity = _complexity(complexity)
    if complexity == "basic":
        return max(5, min(base, 10))
    if complexity == "advanced":
        return max(15, base * 2)
    return max(10, math.ceil(base * 1.5))


def api_test_count(complexity: str, discovered_apis: Optional[Sequence[DiscoveredAPI]]) -> int:
    """Number of API cases to ask for, scaled by endpoint count."""
    base = (len(discovered_apis) if discovered_apis else 1) * 2

    complexity = _complexity(complexity)
    if complexity == "basic":
        return max(5, min(base, 15))
    if complexity == "advanced":
        return max(20, base * 3)
    return max(10, base * 2)


def format_page(page_info: Optional[PageInfo]) -> str:
    if page_info is None:
        return ""

    lines = [
        "### Web Page Analysis",
        f"**URL**: {page_info.url}",
        f"**Title**: {page_info.title}",
        "**Interactive Elements**:",
        f"- Forms: {len(page_info.forms)}",
        f"- Buttons: {len(page_info.buttons)}",
        f"- Links: {len(page_info.links)}",
        f"- Input Fields: {len(page_info.inputs)}",
    ]

    if page_info.forms:
        lines.append("\n**Forms**:")
        for position, form in enumerate(page_info.forms[:3], start=1):
            lines.append(f"- Form {position}: {form.method} to {form.action or 'current page'}")
            for field in form.inputs[:5]:
                required = " (required)" if field.required else ""
                lines.append(f"  - {field.type}: {field.label}{required}")

    if page_info.buttons:
        lines.append("\n**Key Buttons**:")
        for button in page_info.buttons[:5]:
            lines.append(f'- "{button.text or ""}" ({button.type or "button"})')

    return "\n".join(lines)


def format_discovered_apis(discovered_apis: Optional[Sequence[DiscoveredAPI]]) -> str:
    if not discovered_apis:
        return ""

    methods = Counter(api.method for api in discovered_apis)
    distribution = ", ".join(f"{method}: {count}" for method, count in methods.items())
    samples = "\n".join(f"- {api.method} {api.url}" for api in discovered_apis[:5])
    return f"""### Discovered Endpoints
**Total Endpoints**: {len(discovered_apis)}
**Methods Distribution**: {distribution}
**Sample Endpoints**:
{samples}"""


def format_journey(journey: Optional[UserJourney], include_api: bool = False) -> str:
    if journey is None:
        return ""

    actions = "\n".join(
        f"{position}. {step.action}" + (f" ({step.element})" if step.element else "")
        for position, step in enumerate(journey.steps, start=1)
    ) or "No steps defined"
    text = f"""### User Journey Context
**Journey**: {journey.title}
**Description**: {journey.description}

**Key User Actions**:
{actions}"""

    if include_api and journey.api_endpoints:
        calls = "\n".join(
            f"{position}. {endpoint.method} {endpoint.path} - {endpoint.description or 'No description'}"
            for position, endpoint in enumerate(journey.api_endpoints, start=1)
        )
        text += f"\n\n**Journey Calls**:\n{calls}"
    return text


def _focus(focus: Optional[Sequence[str]]) -> str:
    if not focus:
        return ""
    return "\n## FOCUS AREAS\n" + "\n".join(f"- {area}" for area in focus)


def build_gui_prompt(
    page_info: Optional[PageInfo],
    journey: Optional[UserJourney] = None,
    complexity: str = "intermediate",
    focus: Optional[Sequence[str]] = None
) -> str:
    """Build the prompt asking for GUI test cases."""
    count = gui_test_count(complexity, page_info)
    return f"""You are an expert QA engineer specializing in automated browser testing. Generate GUI test cases using Playwright for the following web application.

## CONTEXT ANALYSIS
{format_page(page_info)}
{format_journey(journey)}

## TEST GENERATION REQUIREMENTS
1. **Functional Coverage**: Test all interactive elements and workflows
2. **User Experience**: Validate user journeys and navigation paths
3. **Error Handling**: Test invalid inputs and edge cases
4. **Accessibility**: Verify ARIA labels and keyboard navigation
{_focus(focus)}

## OUTPUT FORMAT
Generate a JSON array of GUI test cases with this EXACT structure:

{GUI_SCHEMA}

## QUALITY GUIDELINES
- Prefer data-testid, role and aria-label selectors over positional ones
- Add waitFor to every goto and click step
- Define testData.inputs for every fill step
- Give each test at least two tags

{GUI_COMPLEXITY[_complexity(complexity)]}

IMPORTANT: Generate {count} high-quality GUI test cases. Each test should be independent and executable in any order."""


def build_api_prompt(
    discovered_apis: Optional[Sequence[DiscoveredAPI]],
    journey: Optional[UserJourney] = None,
    complexity: str = "intermediate",
    focus: Optional[Sequence[str]] = None
) -> str:
    """Build the prompt asking for API test cases."""
    count = api_test_count(complexity, discovered_apis)
    return f"""You are an expert API testing engineer. Generate API test cases for the following service.

## CONTEXT ANALYSIS
{format_discovered_apis(discovered_apis)}
{format_journey(journey, include_api=True)}

## TEST GENERATION REQUIREMENTS
1. **CRUD Coverage**: Exercise GET, POST, PUT and DELETE for each resource
2. **Error Handling**: Cover 4xx and 5xx responses
3. **Security**: Authentication, authorization and input validation
4. **Performance**: Add response time assertions for critical endpoints
{_focus(focus)}

## OUTPUT FORMAT
Generate a JSON array of API test cases with this EXACT structure:

{API_SCHEMA}

## QUALITY GUIDELINES
- Use relative endpoints and {{{{variables}}}} for tokens, never literal credentials
- Always include a status assertion
- Validate the response body of write requests

{API_COMPLEXITY[_complexity(complexity)]}

IMPORTANT: Generate {count} comprehensive API test cases. Focus on business-critical operations and common failure patterns."""


def build_journey_prompt(text: str) -> str:
    """Build the prompt converting a free-form journey description to JSON."""
    example = {
        "id": "journey-id",
        "title": "Journey title",
        "description": "What the user wants to achieve",
        "steps": [{"id": "step-1", "action": "click", "element": "login button", "expected": "Form opens",
                   "apiCalls": ["POST /api/login"]}],
        "apiEndpoints": [{"method": "POST", "path": "/api/login", "description": "Authenticate user",
                          "statusCode": 200}],
        "testScenarios": [{"name": "Successful login", "type": "happy_path", "steps": ["step-1"],
                           "assertions": ["User is logged in"]}],
    }
    return f"""Convert the following user journey description into a structured JSON object.

JOURNEY:
{text}

Respond with a single JSON object shaped like this example:
{json.dumps(example, indent=2)}"""
