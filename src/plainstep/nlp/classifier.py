"""
PlainStep Intent Classifiers

An intent classifier turns a step sentence into a best-guess intent label
plus the text spans it recognised, each tagged with a semantic role
(page, value, element, message) and its character offset.

Two back-ends are provided:
- PatternIntentClassifier: deterministic phrase patterns (default)
- LLMIntentClassifier: asks a chat model through langchain
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from plainstep.core.config import ClassifierKind, LLMProvider, Settings
from plainstep.core.exceptions import ClassifierError, ConfigurationError

logger = logging.getLogger(__name__)

NO_INTENT = "none"


@dataclass
class Entity:
    """A span of the step text tagged with a semantic role."""

    role: str  # page, value, element, message
    start: int
    text: str


@dataclass
class Classification:
    """Output of a classifier for one step sentence."""

    intent: str = NO_INTENT
    entities: list[Entity] = field(default_factory=list)
    score: float = 0.0

    @property
    def has_intent(self) -> bool:
        return bool(self.intent) and self.intent.lower() != NO_INTENT


class IntentClassifier(Protocol):
    """Capability consumed by the step interpreter."""

    async def classify(self, text: str) -> Classification:
        ...


@dataclass
class IntentPattern:
    """One utterance shape: named groups become entities."""

    intent: str
    regex: re.Pattern


def _pattern(intent: str, expression: str) -> IntentPattern:
    return IntentPattern(intent=intent, regex=re.compile(expression, re.IGNORECASE))


# A quoted span is taken whole, so values may contain the joining words.
_QUOTED = r"""(?:"[^"]*"|'[^']*')"""

# Quotes opening and closing on word boundaries; apostrophes inside words never match
QUOTED_SPAN_PATTERN = re.compile(r"""(?<!\w)(["'])(.*?)\1(?!\w)""")


def mask_quoted(text: str) -> str:
    """
    Blank out the inside of quoted spans, keeping quotes and offsets.

    Phrase patterns run on the masked text so that words inside a quoted
    value ("Go to cart") never select the intent.
    """
    return QUOTED_SPAN_PATTERN.sub(
        lambda m: m.group(1) + "x" * len(m.group(2)) + m.group(1), text
    )


# Order matters: the first matching pattern wins.
DEFAULT_PATTERNS: list[IntentPattern] = [
    _pattern("navigate", r"\b(?:is|am|are) on (?P<page>.+)$"),
    _pattern("navigate", r"\bgo(?:es)? to (?P<page>.+)$"),
    _pattern("navigate", r"\bnavigates? to (?P<page>.+)$"),
    _pattern("fill", r"\bfills? (?P<value>" + _QUOTED + r"|.+?) in(?:to)? (?P<element>.+)$"),
    _pattern("fill", r"\b(?:enters?|types?) (?P<value>" + _QUOTED + r"|.+?) in(?:to)? (?P<element>.+)$"),
    _pattern("radio", r"\bselects? (?P<value>" + _QUOTED + r"|.+?) from (?P<element>.+?\bradio)\s*$"),
    _pattern("select", r"\bselects? (?P<value>" + _QUOTED + r"|.+?) from (?P<element>.+)$"),
    _pattern("uncheck", r"\bunchecks? (?P<value>" + _QUOTED + r"|.+?) from (?P<element>.+)$"),
    _pattern("check", r"\bchecks? (?P<value>" + _QUOTED + r"|.+?) from (?P<element>.+)$"),
    _pattern("assertUrl", r"\b(?:should )?(?:be )?redirected to (?P<page>.+)$"),
    _pattern("assertText", r"\bsees? (?:a |an |the )?(?P<message>.+?) message\b"),
    _pattern(
        "assertVisible",
        r"^(?:(?:given|when|then|and|but)\s+)?(?P<element>.+?) should be (?:visible|displayed)",
    ),
    _pattern("click", r"\bclicks?(?: on)? (?P<element>.+)$"),
]


class PatternIntentClassifier:
    """
    Deterministic classifier built from an ordered table of phrase patterns.

    Each pattern is a case-insensitive regular expression whose named
    groups are reported as entities, with offsets into the original text.
    """

    def __init__(self, patterns: Optional[list[IntentPattern]] = None):
        self.patterns = patterns if patterns is not None else list(DEFAULT_PATTERNS)

    async def classify(self, text: str) -> Classification:
        stripped = text.strip()
        offset = text.find(stripped) if stripped else 0
        masked = mask_quoted(stripped)

        for pattern in self.patterns:
            match = pattern.regex.search(masked)
            if not match:
                continue

            entities = [
                Entity(
                    role=role,
                    start=match.start(role) + offset,
                    text=stripped[match.start(role):match.end(role)],
                )
                for role, span in match.groupdict().items()
                if span
            ]
            return Classification(intent=pattern.intent, entities=entities, score=1.0)

        return Classification()


class LLMIntentClassifier:
    """
    Classifier backed by a chat model.

    The model is asked for a JSON object; anything it returns that cannot
    be parsed into a known intent degrades to "no intent" so the
    interpreter's fallbacks still apply.
    """

    INTENTS = [
        "navigate",
        "fill",
        "click",
        "select",
        "check",
        "uncheck",
        "radio",
        "assertText",
        "assertUrl",
        "assertVisible",
    ]

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    @property
    def system_prompt(self) -> str:
        return f"""You classify Gherkin test steps for a browser automation tool.

Allowed intents: {", ".join(self.INTENTS)}, or "none" if nothing fits.
Entity roles:
- page: the page or URL path a user is on, goes to, or is redirected to
- value: text to type, or the option to select/check
- element: the UI element to act on, including its type noun ("password input")
- message: text expected to appear on the page

Copy entity text exactly as it appears in the step, including quotes.
Respond with JSON only:
{{"intent": "<intent>", "entities": [{{"role": "<role>", "text": "<exact span>"}}]}}"""

    async def classify(self, text: str) -> Classification:
        messages = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=text),
        ]
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            raise ClassifierError(
                f"Intent classification failed: {e}",
                details={"step": text},
            ) from e

        content = response.content if isinstance(response.content, str) else str(response.content)
        data = _parse_json_response(content)
        if not isinstance(data, dict):
            logger.warning(f"Classifier returned no JSON for step: {text}")
            return Classification()

        intent = str(data.get("intent") or NO_INTENT)
        if intent not in self.INTENTS:
            return Classification()

        entities = []
        search_from = 0
        for item in data.get("entities") or []:
            span = str(item.get("text") or "")
            if not span:
                continue
            start = text.find(span, search_from)
            if start < 0:
                start = text.find(span)
            if start < 0:
                logger.debug(f"Dropping entity not present in step text: {span!r}")
                continue
            search_from = start + len(span)
            entities.append(Entity(role=str(item.get("role", "")), start=start, text=span))

        return Classification(intent=intent, entities=entities, score=1.0)


def _parse_json_response(response: str) -> Optional[dict]:
    """Parse JSON from an LLM response."""
    # Try markdown code blocks first
    json_match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", response)
    if json_match:
        try:
            return json.loads(json_match.group(1))
        except json.JSONDecodeError:
            pass

    # Try raw JSON
    try:
        json_match = re.search(r"\{[\s\S]*\}", response)
        if json_match:
            return json.loads(json_match.group(0))
    except json.JSONDecodeError:
        pass

    return None


def create_llm(settings: Settings) -> BaseChatModel:
    """Create a chat model based on configuration."""
    provider = settings.default_llm_provider
    key = settings.get_api_key(provider)

    if provider == LLMProvider.ANTHROPIC:
        if not key:
            raise ConfigurationError(
                "ANTHROPIC_API_KEY not configured",
                details={"provider": provider.value},
            )
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(model=settings.default_model, api_key=key, max_tokens=512)

    elif provider == LLMProvider.OPENAI:
        if not key:
            raise ConfigurationError(
                "OPENAI_API_KEY not configured",
                details={"provider": provider.value},
            )
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=settings.default_model or "gpt-4o", api_key=key)

    raise ConfigurationError(
        f"Unsupported provider: {provider}",
        details={"provider": str(provider)},
    )


def create_classifier(settings: Settings) -> IntentClassifier:
    """Build the classifier selected by INTENT_CLASSIFIER."""
    if settings.intent_classifier == ClassifierKind.LLM:
        return LLMIntentClassifier(create_llm(settings))
    return PatternIntentClassifier()
