"""Shared fixtures for QAForge tests."""

import pytest

from qaforge.core.models import (
    ApiAssertion,
    ApiAssertionType,
    ApiTestCase,
    DiscoveredAPI,
    GuiTestCase,
    HttpMethod,
    PageInfo,
    Priority,
    Step,
    StepAction,
    WaitCondition,
)
from qaforge.llm.engine import AllProvidersFailedError


APP_URL = "https://app.test"


class StubLLM:
    """Stands in for LLMEngine.generate_json.

    ``response`` may be a value, a callable taking the prompt, or an
    exception instance to raise.
    """

    def __init__(self, response=None):
        self.response = response
        self.prompts = []

    def generate_json(self, prompt):
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        if callable(self.response):
            return self.response(prompt)
        return self.response


class StubInspector:
    """Returns canned page structure instead of opening a browser."""

    def __init__(self, page_info, apis):
        self.page_info = page_info
        self.apis = apis
        self.urls = []

    def inspect(self, url):
        self.urls.append(url)
        return self.page_info, self.apis


@pytest.fixture
def app_url():
    return APP_URL


@pytest.fixture
def page_dict():
    """A login page with one form, a button and two links."""
    username = {"index": 0, "type": "text", "name": "username", "required": True}
    email = {"index": 1, "type": "email", "id": "email"}
    submit = {"index": 2, "type": "submit", "value": "Sign in"}
    return {
        "title": "Login",
        "url": APP_URL,
        "forms": [{"index": 0, "action": "/login", "method": "post", "inputs": [username, email, submit]}],
        "buttons": [{"index": 0, "text": "Sign in", "id": "login", "type": "submit"}],
        "links": [
            {"index": 0, "href": f"{APP_URL}/about", "text": "About"},
            {"index": 1, "href": "mailto:help@app.test", "text": "Mail us"},
        ],
        "inputs": [username, email, submit],
    }


@pytest.fixture
def page_info(page_dict):
    return PageInfo.model_validate(page_dict)


@pytest.fixture
def discovered_apis():
    return [
        DiscoveredAPI(
            method="GET",
            url="https://api.app.test/api/users",
            headers={"Authorization": "Bearer secret"},
            status=200,
        ),
        DiscoveredAPI(
            method="POST",
            url="/api/users",
            headers={"Content-Type": "application/json"},
            body={"name": "Ada"},
            status=201,
        ),
    ]


@pytest.fixture
def raw_gui_cases():
    """LLM output for two GUI cases, one of them sloppy."""
    return [
        {
            "id": "login-valid",
            "name": "Valid login",
            "description": "User logs in with valid credentials",
            "category": "Authentication",
            "priority": "critical",
            "tags": ["auth", "smoke", "auth"],
            "testData": {"inputs": {"username": "ada"}},
            "steps": [
                {"action": "goto", "waitFor": "networkidle"},
                {"action": "fill", "selector": "#username", "value": "ada", "retry": True},
                {"action": "click", "selector": "#login", "waitFor": "networkidle"},
            ],
            "assertions": [{"type": "url", "expected": "/dashboard", "operator": "contains"}],
            "cleanup": [{"action": "click", "selector": "#logout"}],
        },
        {
            "id": "about-link",
            "name": "About link",
            "description": "short",
            "priority": "urgent",
            "steps": [{"action": "tap", "selector": "a.about", "options": {"timeout": "abc", "force": "yes"}}],
            "assertions": [{"type": "glow", "selector": "h1"}],
        },
    ]


@pytest.fixture
def raw_api_cases():
    return [
        {
            "id": "create-user",
            "name": "Create user",
            "description": "Creates a user with valid data",
            "category": "crud",
            "priority": "high",
            "method": "post",
            "endpoint": "https://api.app.test/api/users",
            "headers": {"Authorization": "Bearer {{token}}"},
            "body": {"name": "Ada"},
            "expectedStatus": 201,
            "assertions": [{"type": "body", "path": "id", "operator": "exists", "description": "Returns an id"}],
            "variableExtraction": {"userId": "id"},
        },
        {
            "id": "list-users",
            "name": "List users",
            "method": "GET",
            "endpoint": "api/users",
        },
    ]


@pytest.fixture
def stub_llm():
    return StubLLM


@pytest.fixture
def stub_inspector():
    return StubInspector


@pytest.fixture
def failing_llm():
    return StubLLM(AllProvidersFailedError("All LLM providers failed"))


@pytest.fixture
def gui_case():
    """Factory for minimal valid GUI cases."""
    def make(case_id="case", priority=Priority.MEDIUM, category="functional", **fields):
        fields.setdefault("description", "A reasonably described case")
        fields.setdefault("steps", [
            Step(action=StepAction.GOTO, value=APP_URL, wait_for=WaitCondition.NETWORKIDLE, description="Open"),
        ])
        return GuiTestCase(id=case_id, name=case_id, priority=priority, category=category, **fields)
    return make


@pytest.fixture
def api_case():
    """Factory for minimal valid API cases."""
    def make(case_id="case", priority=Priority.MEDIUM, category="functional",
             method=HttpMethod.GET, expected_status=200, **fields):
        fields.setdefault("description", "A reasonably described case")
        fields.setdefault("assertions", [
            ApiAssertion(type=ApiAssertionType.STATUS, expected=expected_status, description="Status"),
        ])
        return ApiTestCase(
            id=case_id,
            name=case_id,
            priority=priority,
            category=category,
            method=method,
            endpoint=fields.pop("endpoint", "/api/items"),
            expected_status=expected_status,
            **fields,
        )
    return make
