"""
PlainStep Action Recorder

Watches a headed browser session and writes down what the user does as
plain-English steps, in the phrasing the pattern classifier understands:

    And user click "Login" button
    And user fill "standard_user" in "Username" input
    And user select "Price (low to high)" from "sort" dropdown

A script injected into every page reports clicks, blurred text fields and
changed selects, checkboxes and radios to a binding exposed by Playwright.
"""

import logging
from typing import Any, Callable, Optional

from playwright.async_api import Page

from plainstep.tools.browser import BrowserTool

logger = logging.getLogger(__name__)

BINDING_NAME = "plainstepRecordAction"
MAX_NAME_LENGTH = 30

RECORDER_SCRIPT = """
(() => {
    const report = (event) => {
        if (window.plainstepRecordAction) {
            window.plainstepRecordAction(event);
        }
    };
    const clip = (text) => (text || "").trim().substring(0, %(max_name)d);
    const labelOf = (el) => clip((el.labels && el.labels[0] && el.labels[0].innerText) || "");
    const textTypes = ["", "text", "email", "password", "search", "tel", "url", "number"];

    window.addEventListener("click", (e) => {
        if (!e.target || !e.target.closest) return;
        const target = e.target.closest("a, button, input[type=submit], input[type=button], [role=button]")
            || e.target;
        if (target.tagName === "INPUT" && ["checkbox", "radio"].includes(target.type)) {
            return;
        }
        report({
            type: "click",
            tagName: target.tagName.toLowerCase(),
            name: clip(target.innerText || target.getAttribute("aria-label") || target.value || target.id),
        });
    }, true);

    window.addEventListener("blur", (e) => {
        const target = e.target;
        if (!target || !target.tagName) return;
        const isText = target.tagName === "TEXTAREA"
            || (target.tagName === "INPUT" && textTypes.includes((target.getAttribute("type") || "").toLowerCase()));
        if (isText && target.value) {
            report({
                type: "fill",
                name: clip(target.placeholder || target.id || target.name || labelOf(target)),
                value: target.value,
            });
        }
    }, true);

    window.addEventListener("change", (e) => {
        const target = e.target;
        const name = clip(target.name || target.id || labelOf(target));
        if (target.tagName === "SELECT") {
            const option = target.options[target.selectedIndex];
            report({ type: "select", name: name, value: option ? option.text.trim() : "" });
        } else if (target.type === "checkbox") {
            report({ type: target.checked ? "check" : "uncheck", name: name, value: labelOf(target) || name });
        } else if (target.type === "radio" && target.checked) {
            report({ type: "radio", name: name, value: labelOf(target) || target.value });
        }
    }, true);
})();
""" % {"max_name": MAX_NAME_LENGTH}


def quote(text: str) -> str:
    """Double-quote a step argument; inner double quotes become single."""
    return '"' + text.replace('"', "'") + '"'


def step_for_event(event: dict[str, Any]) -> Optional[str]:
    """
    Translate one browser event into a step sentence.

    Args:
        event: Payload reported by the injected script

    Returns:
        The step, or None when the event names nothing usable
    """
    kind = event.get("type")
    name = str(event.get("name") or "").strip()
    value = str(event.get("value") or "").strip()
    if not name:
        return None

    if kind == "click":
        tag = event.get("tagName")
        if tag == "a":
            return f"And user click {quote(name)} link"
        if tag in ("button", "input"):
            return f"And user click {quote(name)} button"
        return f"And user click {quote(name)}"
    if kind == "fill":
        return f"And user fill {quote(value)} in {quote(name)} input"
    if kind == "select" and value:
        return f"And user select {quote(value)} from {quote(name)} dropdown"
    if kind in ("check", "uncheck"):
        return f"And user {kind} {quote(value or name)} from {quote(name)} checkbox"
    if kind == "radio" and value:
        return f"And user select {quote(value)} from {quote(name)} radio"
    return None


class ActionRecorder:
    """
    Collects steps from user interaction with one page.

    Args:
        on_step: Called with every generated step as it happens
    """

    def __init__(self, on_step: Optional[Callable[[str], None]] = None):
        self.on_step = on_step
        self.steps: list[str] = []

    async def start(self, page: Page) -> None:
        """Expose the binding and install the listener script; call before navigating."""
        await page.expose_binding(BINDING_NAME, self.handle_event)
        await page.add_init_script(RECORDER_SCRIPT)
        logger.info("Recording started, perform your actions in the browser")

    def handle_event(self, source: Any, event: dict[str, Any]) -> None:
        event = event or {}
        step = step_for_event(event)
        if step is None:
            logger.debug(f"Ignoring recorded event: {event}")
            return

        # A field blurred twice with the same value is one step
        if self.steps and self.steps[-1] == step and event.get("type") == "fill":
            return

        self.steps.append(step)
        logger.info(f"Generated step: {step}")
        if self.on_step:
            self.on_step(step)

    async def record(self, browser_tool: BrowserTool, url: str) -> list[str]:
        """
        Open url in a fresh page and record until the user closes it.

        Returns:
            Every step generated during the session
        """
        async with browser_tool.get_browser() as browser:
            async with browser_tool.get_page(browser) as (_, page):
                await self.start(page)
                await page.goto(url)
                logger.info(f"Recorder active on {url}, close the browser window to finish")
                await page.wait_for_event("close", timeout=0)

        logger.info(f"Recording finished with {len(self.steps)} step(s)")
        return self.steps
