"""
PlainStep DOM Scanner

Structural fallback for element resolution. Collects every interactive
element of every frame (piercing open shadow roots), fuzzy-matches them
against an element name and turns the matches into candidate selectors.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame
from rapidfuzz import fuzz

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.6

# Attribute values shorter than this never count as "contained in" the name
MIN_CONTAINED_LENGTH = 3

# Inputs whose name attribute is shared by every option of a group
GROUPED_INPUT_TYPES = ("radio", "checkbox")

COLLECT_ELEMENTS_SCRIPT = """
() => {
    const selectors = [
        "button",
        "input",
        "select",
        "textarea",
        "a[href]",
        "[role='button']",
        "[data-testid]",
        "[data-test]",
    ].join(",");
    const items = [];

    const collect = (root) => {
        root.querySelectorAll(selectors).forEach((el) => {
            const isButtonInput = el.tagName === "INPUT"
                && ["submit", "button", "reset"].includes((el.type || "").toLowerCase());
            const text = (el.innerText || el.textContent || (isButtonInput ? el.value : "") || "")
                .trim().substring(0, 50);
            items.push({
                tag: el.tagName.toLowerCase(),
                text: text,
                id: el.id || "",
                name: el.getAttribute("name") || "",
                type: (el.getAttribute("type") || "").toLowerCase(),
                value: el.getAttribute("value") || "",
                ariaLabel: el.getAttribute("aria-label") || "",
                placeholder: el.getAttribute("placeholder") || "",
                testId: el.getAttribute("data-testid") || el.getAttribute("data-test") || "",
            });
        });

        root.querySelectorAll("*").forEach((el) => {
            if (el.shadowRoot) {
                collect(el.shadowRoot);
            }
        });
    };

    collect(document);
    return items;
}
"""


@dataclass
class ScannedElement:
    """Descriptive attributes of one interactive element."""

    tag: str
    text: str = ""
    id: str = ""
    name: str = ""
    aria_label: str = ""
    placeholder: str = ""
    test_id: str = ""
    input_type: str = ""
    value: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScannedElement":
        return cls(
            tag=str(data.get("tag") or "*"),
            text=str(data.get("text") or ""),
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            aria_label=str(data.get("ariaLabel") or ""),
            placeholder=str(data.get("placeholder") or ""),
            test_id=str(data.get("testId") or ""),
            input_type=str(data.get("type") or ""),
            value=str(data.get("value") or ""),
        )

    @property
    def attributes(self) -> list[str]:
        """Non-empty descriptive attributes, lower-cased."""
        values = [self.text, self.id, self.name, self.aria_label, self.placeholder, self.test_id]
        if self.input_type in GROUPED_INPUT_TYPES:
            values.append(self.value)
        return [v.strip().lower() for v in values if v and v.strip()]


def match_score(element: ScannedElement, description: str) -> int:
    """
    Rate how well an element fits a description.

    Returns:
        3 for an attribute equal to the description, 2 when the description
        is contained in an attribute, 1 when an attribute is contained in the
        description or is more than SIMILARITY_THRESHOLD similar, 0 otherwise
    """
    target = description.strip().lower()
    if not target:
        return 0

    attributes = element.attributes
    if target in attributes:
        return 3
    if any(target in attribute for attribute in attributes):
        return 2
    if any(len(a) >= MIN_CONTAINED_LENGTH and a in target for a in attributes):
        return 1
    if any(fuzz.ratio(target, a) / 100 > SIMILARITY_THRESHOLD for a in attributes):
        return 1
    return 0


def element_matches(element: ScannedElement, description: str) -> bool:
    """Check whether an element plausibly is the one described."""
    return match_score(element, description) > 0


def quote_value(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def id_selector(element_id: str) -> str:
    if re.fullmatch(r"[A-Za-z_][\w\-]*", element_id):
        return f"#{element_id}"
    return f"[id={quote_value(element_id)}]"


def selector_for_test_id(test_id: str) -> str:
    return f"[data-testid={quote_value(test_id)}], [data-test={quote_value(test_id)}]"


def name_selector(tag: str, name: str, input_type: str = "", value: str = "") -> str:
    """
    Selector on the name attribute.

    Radio and checkbox groups share one name, so their selector is
    narrowed by the option value.
    """
    selector = f"{tag or '*'}[name={quote_value(name)}]"
    if input_type in GROUPED_INPUT_TYPES and value:
        selector += f"[value={quote_value(value)}]"
    return selector


def candidate_selectors(element: ScannedElement) -> list[str]:
    """Selectors for one element, most stable first."""
    candidates = []
    if element.test_id:
        candidates.append(selector_for_test_id(element.test_id))
    if element.id:
        candidates.append(id_selector(element.id))
    if element.name:
        candidates.append(name_selector(element.tag, element.name, element.input_type, element.value))
    if element.text:
        candidates.append(f"{element.tag}:has-text({quote_value(element.text)})")
    return candidates


def _unique(selectors: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for selector in selectors:
        seen.setdefault(selector, None)
    return list(seen)


class DOMScanner:
    """Scans frames for interactive elements and suggests selectors."""

    async def scan_frame(self, frame: Frame) -> list[ScannedElement]:
        items = await frame.evaluate(COLLECT_ELEMENTS_SCRIPT)
        return [ScannedElement.from_dict(item) for item in items or []]

    async def suggest_selectors(self, frames: list[Frame], description: str) -> list[str]:
        """
        Collect candidate selectors for a description across frames.

        Closer matches come first; within one score, document and frame
        order is kept. Frames that cannot be evaluated (detached,
        navigating) are skipped.
        """
        scored: list[tuple[int, list[str]]] = []

        for frame in frames:
            try:
                elements = await self.scan_frame(frame)
            except PlaywrightError as e:
                logger.debug(f"Skipping frame during structural scan: {e}")
                continue

            for element in elements:
                score = match_score(element, description)
                if score:
                    scored.append((score, candidate_selectors(element)))

        scored.sort(key=lambda item: item[0], reverse=True)
        unique = _unique(selector for _, selectors in scored for selector in selectors)
        logger.debug(f"Structural scan for '{description}' suggested {len(unique)} selector(s)")
        return unique
