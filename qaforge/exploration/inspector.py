"""Playwright-based page inspection and API discovery."""

import json
import logging
from typing import Any, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Response, sync_playwright

from ..core.models import DiscoveredAPI, PageInfo

logger = logging.getLogger(__name__)

API_MARKERS = ("/api/", "/v1/", "/v2/", "/graphql")
STATIC_SUFFIXES = (".html", ".css", ".js")

EXTRACT_PAGE_SCRIPT = """() => {
    const describeInput = (el, index) => ({
        index,
        type: el.tagName === 'SELECT' ? 'select' : el.tagName === 'TEXTAREA' ? 'textarea' : (el.type || 'text'),
        name: el.name || null,
        id: el.id || null,
        placeholder: el.placeholder || null,
        value: el.value || null,
        required: el.required === true,
    });
    const fields = 'input, select, textarea';
    return {
        title: document.title,
        url: window.location.href,
        forms: Array.from(document.forms).map((form, index) => ({
            index,
            action: form.getAttribute('action'),
            method: form.getAttribute('method') || 'GET',
            inputs: Array.from(form.querySelectorAll(fields)).map(describeInput),
        })),
        buttons: Array.from(document.querySelectorAll('button, input[type="submit"], input[type="button"]'))
            .map((el, index) => ({
                index,
                text: (el.innerText || el.value || '').trim(),
                id: el.id || null,
                className: el.className || null,
                type: el.getAttribute('type'),
            })),
        links: Array.from(document.querySelectorAll('a[href]')).map((el, index) => ({
            index,
            href: el.href,
            text: (el.innerText || '').trim(),
            id: el.id || null,
            className: el.className || null,
        })),
        inputs: Array.from(document.querySelectorAll(fields)).map(describeInput),
    };
}"""


def is_api_request(url: str, method: str) -> bool:
    """Heuristic deciding whether a request targets an API."""
    if any(marker in url for marker in API_MARKERS) or url.endswith(".json"):
        return True
    return method.upper() != "GET" and not any(suffix in url for suffix in STATIC_SUFFIXES)


def dedupe_apis(apis: list[DiscoveredAPI]) -> list[DiscoveredAPI]:
    """Keep the first call per method and URL."""
    seen = set()
    unique = []
    for api in apis:
        key = (api.method, api.url)
        if key not in seen:
            seen.add(key)
            unique.append(api)
    return unique


def _json_or_text(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw


class PageInspector:
    """Opens a page in a headless browser and records what it contains.

    Collects the page structure (forms, buttons, links and inputs) and the
    API calls the page makes while loading and during a few light
    interactions.
    """

    def __init__(self, headless: bool = True, timeout: int = 30000, interact: bool = True):
        """Initialize the inspector.

        Args:
            headless: Run the browser without a window.
            timeout: Navigation timeout in milliseconds.
            interact: Click buttons and submit forms to trigger API calls.
        """
        self.headless = headless
        self.timeout = timeout
        self.interact = interact

    def inspect(self, url: str) -> tuple[PageInfo, list[DiscoveredAPI]]:
        """Inspect a page.

        Args:
            url: Page URL.

        Returns:
            Page structure and the de-duplicated API calls observed.
        """
        apis: list[DiscoveredAPI] = []

        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=self.headless)
            page = browser.new_page()
            page.on("response", lambda response: self._record(response, apis))

            page.goto(url, wait_until="networkidle", timeout=self.timeout)
            page_info = self.extract_page_info(page)

            if self.interact:
                self._interact(page)

            browser.close()

        apis = dedupe_apis(apis)
        logger.info(
            f"Inspected {url}: {len(page_info.forms)} forms, {len(page_info.inputs)} inputs, "
            f"{len(apis)} API calls"
        )
        return page_info, apis

    def extract_page_info(self, page: Page) -> PageInfo:
        """Extract the structure of the current page."""
        return PageInfo.model_validate(page.evaluate(EXTRACT_PAGE_SCRIPT))

    @staticmethod
    def _record(response: Response, apis: list[DiscoveredAPI]) -> None:
        request = response.request
        if request.resource_type not in ("xhr", "fetch") and not is_api_request(request.url, request.method):
            return

        try:
            body = response.text()
        except PlaywrightError:
            body = None

        apis.append(DiscoveredAPI(
            method=request.method,
            url=request.url,
            headers=request.headers,
            body=_json_or_text(request.post_data),
            response=_json_or_text(body),
            status=response.status,
        ))

    def _interact(self, page: Page) -> None:
        """Click a few buttons and submit a few forms to trigger API calls."""
        for button in page.query_selector_all('button, input[type="submit"]')[:3]:
            try:
                button.click(timeout=2000)
                page.wait_for_timeout(2000)
            except PlaywrightError as e:
                logger.debug(f"Button interaction failed: {e}")

        for form in page.query_selector_all("form")[:2]:
            try:
                for field in form.query_selector_all('input[type="text"], input[type="email"]'):
                    field.fill("test")
                submit = form.query_selector('input[type="submit"], button[type="submit"]')
                if submit:
                    submit.click(timeout=2000)
                    page.wait_for_timeout(3000)
            except PlaywrightError as e:
                logger.debug(f"Form interaction failed: {e}")
