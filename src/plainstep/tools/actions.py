"""
PlainStep Action Executor

Performs an interpreted Action against a live page. Every intent has one
executor; element-bearing intents go through the element resolver, and
every action ends with a bounded wait for the page to settle.

Stability waits:
- full: network idle, then DOM ready (10 s); used after navigation
- short: the same with a 3 s bound; used after in-page interactions
A stability timeout is logged and the step continues.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from plainstep.core.exceptions import (
    AssertionFailedError,
    ExecutionTimeoutError,
    UnknownActionError,
    UnrecognizedStepError,
)
from plainstep.nlp.interpreter import Action, ElementType, Intent
from plainstep.resolver.element_resolver import ElementResolver

logger = logging.getLogger(__name__)

FULL_STABILITY_MS = 10000
SHORT_STABILITY_MS = 3000
REDIRECT_WINDOW_MS = 2000
URL_ASSERT_TIMEOUT_MS = 10000
POLL_INTERVAL_MS = 100

Executor = Callable[[Action], Awaitable[None]]


class ActionExecutor:
    """
    Executes Actions on a Playwright page.

    Args:
        page: Page owned by the running scenario
        resolver: Element resolver shared by the run
        base_url: Prefix for relative navigation targets
        text_timeout_ms: How long assertText waits for its text
    """

    def __init__(
        self,
        page: Page,
        resolver: ElementResolver,
        base_url: str = "",
        text_timeout_ms: int = 10000,
        full_stability_ms: int = FULL_STABILITY_MS,
        short_stability_ms: int = SHORT_STABILITY_MS,
        redirect_window_ms: int = REDIRECT_WINDOW_MS,
        url_timeout_ms: int = URL_ASSERT_TIMEOUT_MS,
        poll_interval_ms: int = POLL_INTERVAL_MS,
    ):
        self.page = page
        self.resolver = resolver
        self.base_url = base_url
        self.text_timeout_ms = text_timeout_ms
        self.full_stability_ms = full_stability_ms
        self.short_stability_ms = short_stability_ms
        self.redirect_window_ms = redirect_window_ms
        self.url_timeout_ms = url_timeout_ms
        self.poll_interval_ms = poll_interval_ms

        self._executors: dict[Intent, Executor] = {
            Intent.NAVIGATE: self._navigate,
            Intent.FILL: self._fill,
            Intent.CLICK: self._click,
            Intent.SELECT: self._select,
            Intent.CHECK: self._check,
            Intent.UNCHECK: self._uncheck,
            Intent.ASSERT_TEXT: self._assert_text,
            Intent.ASSERT_URL: self._assert_url,
            Intent.ASSERT_VISIBLE: self._assert_visible,
        }

    async def execute(self, action: Action) -> None:
        """
        Perform one action.

        Raises:
            UnknownActionError: No executor for the action's intent
            ExecutionTimeoutError: A browser operation timed out
            ElementNotFoundError: The action's element could not be resolved
            AssertionFailedError: An assertion did not hold
        """
        executor = self._executors.get(action.intent)
        if executor is None:
            raise UnknownActionError(
                f"Unknown action: {action.intent}",
                intent=str(action.intent),
            )

        logger.info(f"Executing action: {action.to_dict()}")
        try:
            await executor(action)
        except PlaywrightTimeoutError as e:
            raise ExecutionTimeoutError(
                f"Timed out performing {action.intent.value}: {e}",
                details=action.to_dict(),
            ) from e

    # Executors

    async def _navigate(self, action: Action) -> None:
        url = self.resolve_url(self._require(action.value, action, "navigation target"))
        await self.page.goto(url)
        await self.wait_for_page_stable()

    async def _fill(self, action: Action) -> None:
        locator = await self._resolve(action)
        await locator.fill(self._require(action.value, action, "value"))
        await self.wait_for_page_stable(short=True)

    async def _select(self, action: Action) -> None:
        locator = await self._resolve(action)
        await locator.select_option(label=self._require(action.value, action, "option"))
        await self.wait_for_page_stable(short=True)

    async def _click(self, action: Action) -> None:
        if action.element_type == ElementType.RADIO and action.value:
            locator = await self.resolver.resolve(self.page, action.value, ElementType.RADIO.value)
        else:
            locator = await self._resolve(action)

        previous_url = self.page.url
        await locator.click()
        await self.wait_for_redirect_or_stable(previous_url)

    async def _check(self, action: Action) -> None:
        locator = await self._resolve_option(action)
        await locator.check()
        await self.wait_for_page_stable(short=True)

    async def _uncheck(self, action: Action) -> None:
        locator = await self._resolve_option(action)
        await locator.uncheck()
        await self.wait_for_page_stable(short=True)

    async def _assert_text(self, action: Action) -> None:
        expected = self._require(action.value, action, "text")
        await self.page.wait_for_load_state("domcontentloaded")
        try:
            await self.page.get_by_text(expected).first.wait_for(
                state="visible", timeout=self.text_timeout_ms
            )
        except PlaywrightError as e:
            logger.error(f'Assertion failed: could not find text "{expected}"')
            raise AssertionFailedError(
                f'Assertion failed: could not find text "{expected}"',
                expected=expected,
            ) from e
        logger.info(f'Assertion passed: text "{expected}" is visible on the page')

    async def _assert_url(self, action: Action) -> None:
        expected = self._require(action.value, action, "URL")
        await self.wait_for_url_contains(expected)
        await self.wait_for_page_stable(short=True)

        current = self.page.url
        if expected.lower() not in current.lower():
            logger.error(f'URL assertion failed: expected "{expected}", got "{current}"')
            raise AssertionFailedError(
                f'URL assertion failed: expected "{expected}", got "{current}"',
                expected=expected,
                actual=current,
            )
        logger.info(f'URL assertion passed: "{expected}" found in "{current}"')

    async def _assert_visible(self, action: Action) -> None:
        # Resolution only succeeds for a visible element
        await self._resolve(action)

    # Helpers

    async def _resolve(self, action: Action):
        name = self._require(action.locator, action, "element")
        element_type = action.element_type.value if action.element_type else None
        return await self.resolver.resolve(self.page, name, element_type)

    async def _resolve_option(self, action: Action):
        name = action.value or self._require(action.locator, action, "element")
        return await self.resolver.resolve(self.page, name, ElementType.CHECKBOX.value)

    @staticmethod
    def _require(slot: Optional[str], action: Action, what: str) -> str:
        if not slot:
            raise UnrecognizedStepError(
                f"Step has no {what} for {action.intent.value}",
                details=action.to_dict(),
            )
        return slot

    def resolve_url(self, target: str) -> str:
        """Absolute URLs pass through, anything else is joined to the base URL."""
        if target.startswith(("http://", "https://")):
            return target
        if not target.startswith("/"):
            target = f"/{target}"
        return f"{self.base_url.rstrip('/')}{target}"

    async def wait_for_page_stable(self, short: bool = False) -> None:
        timeout = self.short_stability_ms if short else self.full_stability_ms
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout)
            await self.page.wait_for_load_state("domcontentloaded", timeout=timeout)
            logger.debug("Page stabilized after navigation/action")
        except PlaywrightTimeoutError:
            logger.warning(f"Page stability timeout ({timeout}ms), continuing...")

    async def wait_for_url_change(self, previous_url: str, timeout_ms: int) -> bool:
        deadline = time.monotonic() + timeout_ms / 1000
        while time.monotonic() < deadline:
            if self.page.url != previous_url:
                return True
            await asyncio.sleep(self.poll_interval_ms / 1000)
        return self.page.url != previous_url

    async def wait_for_redirect_or_stable(self, previous_url: str) -> None:
        """After a click: full wait if the URL changed, short wait otherwise."""
        if await self.wait_for_url_change(previous_url, self.redirect_window_ms):
            logger.info(f"Redirect detected: {previous_url} -> {self.page.url}")
            await self.wait_for_page_stable()
        else:
            await self.wait_for_page_stable(short=True)

    async def wait_for_url_contains(self, expected: str) -> bool:
        """Poll until the URL contains expected (case-insensitive) or time runs out."""
        needle = expected.lower()
        deadline = time.monotonic() + self.url_timeout_ms / 1000
        while time.monotonic() < deadline:
            if needle in self.page.url.lower():
                return True
            await asyncio.sleep(self.poll_interval_ms / 1000)
        return needle in self.page.url.lower()
