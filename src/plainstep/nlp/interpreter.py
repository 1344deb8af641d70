"""
PlainStep Step Interpreter

Turns the text of one Gherkin step into a structured Action:
an intent plus the slots that intent needs (element locator, value,
element type). Interpretation has no side effects; everything it needs
is injected: the intent classifier and the placeholder lookup.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from plainstep.core.exceptions import DataNotFoundError, UnrecognizedStepError
from plainstep.nlp.classifier import Classification, Entity, IntentClassifier, mask_quoted

logger = logging.getLogger(__name__)

# Lookup for {dot.path} placeholders; returns None when the key is absent
PlaceholderResolver = Callable[[str], Any]


class Intent(str, Enum):
    """Canonical action categories."""

    NAVIGATE = "navigate"
    FILL = "fill"
    CLICK = "click"
    SELECT = "select"
    CHECK = "check"
    UNCHECK = "uncheck"
    ASSERT_TEXT = "assertText"
    ASSERT_URL = "assertUrl"
    ASSERT_VISIBLE = "assertVisible"


class ElementType(str, Enum):
    """Kinds of element a step can refer to."""

    BUTTON = "button"
    LINK = "link"
    INPUT = "input"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    TEXTAREA = "textarea"
    ANY = "any"


@dataclass
class Action:
    """Structured form of one step, built fresh for every step text."""

    intent: Intent
    locator: Optional[str] = None
    value: Optional[str] = None
    element_type: Optional[ElementType] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and the CLI."""
        return {
            "intent": self.intent.value,
            "locator": self.locator,
            "value": self.value,
            "element_type": self.element_type.value if self.element_type else None,
        }


# `/`-prefixed token not preceded by a scheme, host or another slash
URL_PATH_PATTERN = re.compile(r"(?<![\w:/])/[^\s\"']*")
PLACEHOLDER_PATTERN = re.compile(r"\{([\w\-]+(?:\.[\w\-]+)*)\}")
ELEMENT_SUFFIX_PATTERN = re.compile(
    r"\s(?:input|button|link|checkbox|radio|page|dropdown|textarea)$", re.IGNORECASE
)
ENTITY_SUFFIX_PATTERN = re.compile(
    r"\s(?:input|button|link|checkbox|radio|page|dropdown|textarea|message)$", re.IGNORECASE
)
LEADING_ARTICLE_PATTERN = re.compile(r"^the\s", re.IGNORECASE)
NAVIGATION_PHRASES = ("is on", "am on", "goes to")

# Intents whose two entities are (value, element) in reading order
TWO_SLOT_INTENTS = {"fill", "select", "check", "uncheck", "radio"}


def find_url_path(text: str) -> Optional[str]:
    """Return the first literal URL path in the text, if any."""
    match = URL_PATH_PATTERN.search(text)
    if not match:
        return None
    return match.group(0).replace('"', "").strip()


def _clean_span(span: str, suffix_pattern: re.Pattern) -> str:
    """Strip quoting and a trailing type noun from an entity span."""
    cleaned = span.replace('"', "").strip()
    cleaned = suffix_pattern.sub("", cleaned).strip()
    return _unquote(cleaned)


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] == "'":
        return text[1:-1].strip()
    return text


def _strip_article(text: str) -> str:
    return _unquote(LEADING_ARTICLE_PATTERN.sub("", text).strip())


def _navigate(slots: dict[str, str], text: str) -> Action:
    # A literal path beats a descriptive page name
    return Action(intent=Intent.NAVIGATE, value=slots.get("url_path") or slots.get("page"))


def _fill(slots: dict[str, str], text: str) -> Action:
    return Action(
        intent=Intent.FILL,
        locator=slots.get("element"),
        value=slots.get("value"),
        element_type=ElementType.INPUT,
    )


def _click(slots: dict[str, str], text: str) -> Action:
    element_type = ElementType.LINK if "link" in text.lower() else ElementType.BUTTON
    return Action(intent=Intent.CLICK, locator=slots.get("element"), element_type=element_type)


def _select(slots: dict[str, str], text: str) -> Action:
    return Action(
        intent=Intent.SELECT,
        locator=slots.get("element"),
        value=slots.get("value"),
        element_type=ElementType.DROPDOWN,
    )


def _check(slots: dict[str, str], text: str) -> Action:
    return Action(
        intent=Intent.CHECK,
        locator=slots.get("element"),
        value=slots.get("value"),
        element_type=ElementType.CHECKBOX,
    )


def _uncheck(slots: dict[str, str], text: str) -> Action:
    return Action(
        intent=Intent.UNCHECK,
        locator=slots.get("element"),
        value=slots.get("value"),
        element_type=ElementType.CHECKBOX,
    )


def _radio(slots: dict[str, str], text: str) -> Action:
    return Action(
        intent=Intent.CLICK,
        locator=slots.get("element"),
        value=slots.get("value"),
        element_type=ElementType.RADIO,
    )


def _assert_text(slots: dict[str, str], text: str) -> Action:
    return Action(intent=Intent.ASSERT_TEXT, value=slots.get("message") or slots.get("value"))


def _assert_url(slots: dict[str, str], text: str) -> Action:
    return Action(intent=Intent.ASSERT_URL, value=slots.get("url_path") or slots.get("page"))


def _assert_visible(slots: dict[str, str], text: str) -> Action:
    return Action(
        intent=Intent.ASSERT_VISIBLE,
        locator=slots.get("element"),
        element_type=_element_type_from_text(text),
    )


def _element_type_from_text(text: str) -> ElementType:
    lowered = text.lower()
    for element_type in ElementType:
        if element_type is not ElementType.ANY and re.search(rf"\b{element_type.value}\b", lowered):
            return element_type
    return ElementType.ANY


ActionBuilder = Callable[[dict[str, str], str], Action]

INTENT_TABLE: dict[str, ActionBuilder] = {
    "navigate": _navigate,
    "fill": _fill,
    "click": _click,
    "select": _select,
    "check": _check,
    "uncheck": _uncheck,
    "radio": _radio,
    "assertText": _assert_text,
    "assertUrl": _assert_url,
    "assertVisible": _assert_visible,
}


class StepInterpreter:
    """
    Converts step sentences into Actions.

    Args:
        classifier: Intent classification capability
        resolve_placeholder: Lookup for {dot.path} test-data keys
        intent_table: Intent name -> Action builder (defaults to INTENT_TABLE)
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        resolve_placeholder: Optional[PlaceholderResolver] = None,
        intent_table: Optional[dict[str, ActionBuilder]] = None,
    ):
        self.classifier = classifier
        self.resolve_placeholder = resolve_placeholder or (lambda key: None)
        self.intent_table = intent_table if intent_table is not None else INTENT_TABLE

    async def interpret(self, step_text: str) -> Action:
        """
        Interpret one step sentence (keyword included).

        Raises:
            UnrecognizedStepError: No intent applies to the text
            DataNotFoundError: A placeholder names a missing test-data key
        """
        url_path = find_url_path(step_text)
        classification = await self.classifier.classify(step_text)

        if not classification.has_intent:
            lowered = mask_quoted(step_text).lower()
            if any(phrase in lowered for phrase in NAVIGATION_PHRASES):
                logger.debug(f"Falling back to navigation for step: {step_text}")
                action = Action(intent=Intent.NAVIGATE, value=url_path or "unknown")
                return self._resolve_placeholders(action)
            raise UnrecognizedStepError(f"Step not recognized: {step_text}", step_text=step_text)

        builder = self.intent_table.get(classification.intent)
        if builder is None:
            raise UnrecognizedStepError(
                f"Step not recognized: {step_text}",
                step_text=step_text,
                details={"intent": classification.intent},
            )

        slots = self._extract_slots(classification)
        if url_path:
            slots["url_path"] = url_path

        action = builder(slots, step_text)
        logger.debug(f"Interpreted '{step_text}' as {action.to_dict()}")
        return self._resolve_placeholders(action)

    def _extract_slots(self, classification: Classification) -> dict[str, str]:
        slots: dict[str, str] = {}

        for entity in classification.entities:
            value = _clean_span(entity.text, ENTITY_SUFFIX_PATTERN)
            if entity.role in ("page", "element"):
                value = _strip_article(value)
            slots[entity.role] = value

        # Positional assignment overrides role labels for (value, element) steps
        ordered: list[Entity] = sorted(classification.entities, key=lambda e: e.start)
        if len(ordered) >= 2 and classification.intent in TWO_SLOT_INTENTS:
            slots["value"] = _clean_span(ordered[0].text, ELEMENT_SUFFIX_PATTERN)
            element = _clean_span(ordered[1].text, ELEMENT_SUFFIX_PATTERN)
            slots["element"] = _strip_article(element)

        return slots

    def _resolve_placeholders(self, action: Action) -> Action:
        if action.value:
            action.value = self.substitute(action.value)
        return action

    def substitute(self, text: str) -> str:
        """Replace every {dot.path} token in text with its test-data value."""

        def replace(match: re.Match) -> str:
            key = match.group(1)
            value = self.resolve_placeholder(key)
            if value is None:
                raise DataNotFoundError(f"Test data not found for key: {key}", key=key)
            return str(value)

        return PLACEHOLDER_PATTERN.sub(replace, text)
