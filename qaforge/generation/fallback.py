"""Deterministic test suites used when LLM output is unusable.

Suites are written as raw dictionaries in the same shape the LLM is asked
for and go through the regular validators, so they receive exactly the
same normalization as generated cases.
"""

import logging
from typing import Optional, Sequence

from ..core.models import (
    ApiTestCase,
    DiscoveredAPI,
    FormInfo,
    GenerationOptions,
    GuiTestCase,
    PageInfo,
    UserJourney,
)
from .validators import validate_api_test_cases, validate_gui_test_cases

logger = logging.getLogger(__name__)

SAMPLE_VALUES = {
    "email": "test@example.com",
    "password": "TestPassword123!",
    "number": "42",
    "tel": "+1234567890",
    "url": "https://example.com",
}


def _navigate(app_url: str) -> dict:
    return {"action": "goto", "value": app_url, "waitFor": "networkidle", "description": "Navigate to application"}


def _basic_load_case(page_info: PageInfo, app_url: str) -> dict:
    assertions = [{"type": "visible", "selector": "body", "expected": True, "description": "Page body should be visible"}]
    if page_info.title:
        assertions.append({
            "type": "text",
            "selector": "title",
            "expected": page_info.title,
            "description": f'Page title should be "{page_info.title}"',
        })
    return {
        "id": "gui-basic-load",
        "name": "Basic Page Load",
        "description": "Verify the application page loads correctly",
        "category": "navigation",
        "priority": "high",
        "tags": ["basic", "smoke"],
        "steps": [
            _navigate(app_url),
            {"action": "wait", "selector": "body", "description": "Wait for page to load"},
            {"action": "screenshot", "description": "Take screenshot for verification"},
        ],
        "assertions": assertions,
    }


def _form_case(position: int, form: FormInfo, app_url: str) -> dict:
    steps = [_navigate(app_url)]
    inputs = {}
    for field in form.inputs:
        if field.type in ("text", "email", "password"):
            value = SAMPLE_VALUES.get(field.type, "Test Value")
            inputs[field.label] = value
            steps.append({
                "action": "fill",
                "selector": field.selector,
                "value": value,
                "retry": True,
                "description": f"Fill {field.label} with test value",
            })
        elif field.type == "select":
            steps.append({
                "action": "select",
                "selector": f"#{field.id}" if field.id else f'select[name="{field.name}"]',
                "value": field.value or "",
                "retry": True,
                "description": f"Select option in {field.label}",
            })

    if any(field.type == "submit" for field in form.inputs):
        steps.append({
            "action": "click",
            "selector": 'input[type="submit"]',
            "waitFor": "networkidle",
            "retry": True,
            "description": "Submit form",
        })

    assertions = [{"type": "visible", "selector": "form", "expected": True, "description": "Form should be visible"}]
    for field in form.inputs:
        if field.required:
            assertions.append({
                "type": "attribute",
                "selector": field.selector,
                "attribute": "required",
                "operator": "exists",
                "description": f"{field.label} should be required",
            })

    return {
        "id": f"gui-form-{position}",
        "name": f"Form {position + 1} Validation",
        "description": "Test form validation and submission",
        "category": "form",
        "priority": "high",
        "tags": ["form", "validation"],
        "testData": {"inputs": inputs},
        "steps": steps,
        "assertions": assertions,
    }


def build_gui_fallback(
    page_info: Optional[PageInfo],
    app_url: str,
    expanded: bool = False
) -> list[GuiTestCase]:
    """Build the GUI fallback suite for a page.

    Args:
        page_info: Discovered page structure, if any.
        app_url: Application URL.
        expanded: Add form, button and link cases to the smoke test.

    Returns:
        Validated fallback cases.
    """
    page_info = page_info or PageInfo()
    raw_cases = [_basic_load_case(page_info, app_url)]

    if expanded:
        raw_cases.extend(_form_case(position, form, app_url) for position, form in enumerate(page_info.forms))

        for position, button in enumerate(page_info.buttons[:5]):
            if not button.text:
                continue
            raw_cases.append({
                "id": f"gui-button-{position}",
                "name": f"Button Click - {button.text}",
                "description": f'Test clicking "{button.text}" button',
                "category": "functional",
                "priority": "medium",
                "tags": ["interaction", "buttons"],
                "steps": [
                    _navigate(app_url),
                    {
                        "action": "click",
                        "selector": f"#{button.id}" if button.id else f'button:has-text("{button.text}")',
                        "waitFor": "networkidle",
                        "retry": True,
                        "description": f'Click "{button.text}" button',
                    },
                    {"action": "screenshot", "description": "Take screenshot after button click"},
                ],
                "assertions": [{
                    "type": "visible",
                    "selector": "body",
                    "expected": True,
                    "description": "Page should remain accessible after button click",
                }],
            })

        for position, link in enumerate(page_info.links[:3]):
            if not link.text or not link.href or link.href.startswith(("mailto:", "tel:")):
                continue
            raw_cases.append({
                "id": f"gui-link-{position}",
                "name": f"Link Navigation - {link.text}",
                "description": f'Test navigation via "{link.text}" link',
                "category": "navigation",
                "priority": "medium",
                "tags": ["navigation", "links"],
                "steps": [
                    _navigate(app_url),
                    {
                        "action": "click",
                        "selector": f"#{link.id}" if link.id else f'a:has-text("{link.text}")',
                        "waitFor": "networkidle",
                        "retry": True,
                        "description": f'Click "{link.text}" link',
                    },
                ],
                "assertions": [{
                    "type": "url",
                    "expected": link.href,
                    "operator": "contains",
                    "description": f"Should navigate to {link.href}",
                }],
            })

    logger.info(f"Built {len(raw_cases)} fallback GUI test cases")
    options = GenerationOptions(app_url=app_url, max_test_cases=len(raw_cases))
    return validate_gui_test_cases(raw_cases, options)


def _happy_path_case(position: int, api: DiscoveredAPI) -> dict:
    status = api.status if 200 <= api.status < 300 else 200
    return {
        "id": f"api-{position}-happy",
        "name": f"{api.method} {api.url} - Happy Path",
        "description": f"Test successful {api.method} request to {api.url}",
        "category": "crud",
        "priority": "high",
        "tags": ["api", "happy-path"],
        "method": api.method,
        "endpoint": api.url,
        "headers": api.headers,
        "body": api.body,
        "expectedStatus": status,
        "expectedResponse": api.response,
        "assertions": [
            {"type": "status", "expected": status, "description": f"Should return {status}"},
            {"type": "performance", "expected": 5000, "operator": "less", "description": "Should respond within 5 seconds"},
        ],
    }


def build_api_fallback(
    discovered_apis: Optional[Sequence[DiscoveredAPI]] = None,
    journey: Optional[UserJourney] = None,
    expanded: bool = False
) -> list[ApiTestCase]:
    """Build the API fallback suite.

    The minimal suite is one smoke test against the first known endpoint.
    The expanded suite covers every discovered endpoint with a happy-path
    case, write endpoints with an invalid-data case, and every journey call.

    Args:
        discovered_apis: Observed API calls.
        journey: Parsed user journey, if any.
        expanded: Build the full suite instead of a single smoke test.

    Returns:
        Validated fallback cases.
    """
    discovered_apis = [api for api in (discovered_apis or []) if api.url]
    journey_endpoints = journey.api_endpoints if journey else []
    raw_cases = []

    for position, api in enumerate(discovered_apis):
        raw_cases.append(_happy_path_case(position, api))
        if api.method in ("POST", "PUT"):
            raw_cases.append({
                "id": f"api-{position}-invalid",
                "name": f"{api.method} {api.url} - Invalid Data",
                "description": f"Test {api.method} request with invalid data",
                "category": "validation",
                "priority": "medium",
                "tags": ["api", "error-handling"],
                "method": api.method,
                "endpoint": api.url,
                "headers": api.headers,
                "body": {"invalid": "data"},
                "expectedStatus": 400,
                "assertions": [{"type": "status", "expected": 400, "description": "Should return 400 Bad Request for invalid data"}],
            })

    for position, endpoint in enumerate(journey_endpoints):
        status = endpoint.status_code or 200
        raw_cases.append({
            "id": f"journey-api-{position}",
            "name": f"{endpoint.method} {endpoint.path} - Journey Test",
            "description": endpoint.description or f"Test {endpoint.method} {endpoint.path}",
            "priority": "high",
            "tags": ["api", "user-journey"],
            "method": endpoint.method,
            "endpoint": endpoint.path,
            "body": endpoint.request_body,
            "expectedStatus": status,
            "expectedResponse": endpoint.expected_response,
            "assertions": [{"type": "status", "expected": status, "description": f"Should return {status}"}],
        })

    if not raw_cases:
        raw_cases.append({
            "id": "api-smoke",
            "name": "API Smoke Test",
            "description": "Verify the service answers a basic request",
            "category": "functional",
            "priority": "high",
            "tags": ["api", "smoke"],
            "method": "GET",
            "endpoint": "/",
            "expectedStatus": 200,
        })

    if not expanded:
        raw_cases = raw_cases[:1]

    logger.info(f"Built {len(raw_cases)} fallback API test cases")
    options = GenerationOptions(max_test_cases=len(raw_cases))
    return validate_api_test_cases(raw_cases, options)
