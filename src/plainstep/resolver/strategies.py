"""
PlainStep Resolution Strategies

Each strategy is one tier of the element resolver's fallback cascade and
exposes the same capability: given the frames of a page and an element
descriptor, return a visible locator or nothing. The resolver iterates
them in order and stops at the first hit.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Locator

from plainstep.resolver.dom_scanner import DOMScanner, id_selector, name_selector, selector_for_test_id
from plainstep.resolver.registry import SelectorRegistry, descriptor_key

logger = logging.getLogger(__name__)

REGISTRY_TIMEOUT_MS = 500
ROLE_TIMEOUT_MS = 300
LABEL_TIMEOUT_MS = 200
PLACEHOLDER_TIMEOUT_MS = 200
CANDIDATE_TIMEOUT_MS = 500

STABLE_SELECTOR_SCRIPT = """
(el) => ({
    tag: el.tagName.toLowerCase(),
    id: el.id || "",
    name: el.getAttribute("name") || "",
    type: (el.getAttribute("type") || "").toLowerCase(),
    value: el.getAttribute("value") || "",
    testId: el.getAttribute("data-testid") || el.getAttribute("data-test") || "",
})
"""


@dataclass(frozen=True)
class ElementDescriptor:
    """Which element a step refers to: a human name plus a type hint."""

    name: str
    element_type: str = "any"

    @property
    def key(self) -> str:
        return descriptor_key(self.name, self.element_type)

    def __str__(self) -> str:
        return f"{self.name} ({self.element_type})"


@dataclass
class Resolution:
    """A located element and how it was found."""

    locator: Locator
    strategy: str
    selector: Optional[str] = None
    # Whether the selector should be written back to the registry
    persist: bool = True


class ResolutionStrategy(Protocol):
    """One tier of the resolver cascade."""

    name: str

    async def attempt_resolve(
        self,
        frames: list[Frame],
        descriptor: ElementDescriptor,
        page_name: str,
    ) -> Optional[Resolution]:
        ...


async def is_visible(locator: Locator, timeout_ms: int) -> bool:
    """Wait up to timeout_ms for the locator to become visible."""
    try:
        await locator.wait_for(state="visible", timeout=timeout_ms)
        return True
    except PlaywrightError:
        return False


async def is_unique(frame: Frame, selector: str) -> bool:
    """Whether the selector matches exactly one element of the frame."""
    try:
        return await frame.locator(selector).count() == 1
    except PlaywrightError as e:
        logger.debug(f"Could not count matches for {selector}: {e}")
        return False


async def find_in_frames(
    frames: list[Frame],
    selector: str,
    timeout_ms: int = REGISTRY_TIMEOUT_MS,
    unique: bool = False,
) -> Optional[Locator]:
    """
    First visible match for a selector, searching frames in order.

    With unique set, frames where the selector matches more than one
    element are passed over.
    """
    for frame in frames:
        if unique and not await is_unique(frame, selector):
            continue
        locator = frame.locator(selector).first
        if await is_visible(locator, timeout_ms):
            return locator
    return None


async def stable_selector(locator: Locator, frame: Frame) -> Optional[str]:
    """
    Derive a registry-worthy selector from the element's own attributes.

    Only a selector matching this one element in its frame qualifies;
    None when the element has no such attribute.
    """
    try:
        info = await locator.evaluate(STABLE_SELECTOR_SCRIPT)
    except PlaywrightError as e:
        logger.debug(f"Could not derive selector from element: {e}")
        return None

    candidates = []
    if info.get("testId"):
        candidates.append(selector_for_test_id(info["testId"]))
    if info.get("id"):
        candidates.append(id_selector(info["id"]))
    if info.get("name"):
        candidates.append(
            name_selector(
                info.get("tag") or "*",
                info["name"],
                info.get("type", ""),
                info.get("value", ""),
            )
        )

    for selector in candidates:
        if await is_unique(frame, selector):
            return selector
        logger.debug(f"Selector {selector} is shared by other elements, not storing it")
    return None


class RegistryStrategy:
    """Tier 1: revalidate the selector cached for this page."""

    name = "registry"

    def __init__(self, registry: SelectorRegistry, timeout_ms: int = REGISTRY_TIMEOUT_MS):
        self.registry = registry
        self.timeout_ms = timeout_ms

    async def attempt_resolve(
        self,
        frames: list[Frame],
        descriptor: ElementDescriptor,
        page_name: str,
    ) -> Optional[Resolution]:
        selector = self.registry.get(page_name, descriptor.key)
        if not selector:
            return None

        locator = await find_in_frames(frames, selector, self.timeout_ms)
        if locator is None:
            logger.info(f"Registry selector no longer matches, discarding: {selector}")
            self.registry.invalidate(page_name, descriptor.key)
            return None

        logger.info(f"Registry hit: {selector}")
        return Resolution(locator=locator, strategy=self.name, selector=selector, persist=False)


class SemanticStrategy:
    """Tier 2: accessibility role, then label, then placeholder lookups."""

    name = "semantic"

    ROLE_TYPES = ("button", "link")

    async def attempt_resolve(
        self,
        frames: list[Frame],
        descriptor: ElementDescriptor,
        page_name: str,
    ) -> Optional[Resolution]:
        pattern = re.compile(re.escape(descriptor.name), re.IGNORECASE)

        for frame in frames:
            attempts = []
            if descriptor.element_type in self.ROLE_TYPES:
                attempts.append(
                    ("role", frame.get_by_role(descriptor.element_type, name=pattern), ROLE_TIMEOUT_MS)
                )
            attempts.append(("label", frame.get_by_label(pattern), LABEL_TIMEOUT_MS))
            attempts.append(("placeholder", frame.get_by_placeholder(pattern), PLACEHOLDER_TIMEOUT_MS))

            for lookup, locator, timeout_ms in attempts:
                first = locator.first
                if await is_visible(first, timeout_ms):
                    logger.info(f"Found '{descriptor.name}' by {lookup}")
                    return Resolution(
                        locator=first,
                        strategy=f"{self.name}:{lookup}",
                        selector=await stable_selector(first, frame),
                    )
        return None


class StructuralScanStrategy:
    """Tier 3: fuzzy-match a scan of every frame, try the candidates in order."""

    name = "structural"

    def __init__(self, scanner: Optional[DOMScanner] = None, timeout_ms: int = CANDIDATE_TIMEOUT_MS):
        self.scanner = scanner or DOMScanner()
        self.timeout_ms = timeout_ms

    async def attempt_resolve(
        self,
        frames: list[Frame],
        descriptor: ElementDescriptor,
        page_name: str,
    ) -> Optional[Resolution]:
        logger.info(f"Deep scanning {len(frames)} frame(s) for '{descriptor.name}'")
        suggestions = await self.scanner.suggest_selectors(frames, descriptor.name)

        for selector in suggestions:
            locator = await find_in_frames(frames, selector, self.timeout_ms, unique=True)
            if locator is not None:
                logger.info(f"Structural match: {selector}")
                return Resolution(locator=locator, strategy=self.name, selector=selector)

        # No candidate pins down a single element: use the first visible one for this step only
        for selector in suggestions:
            locator = await find_in_frames(frames, selector, self.timeout_ms)
            if locator is not None:
                logger.info(f"Structural match (ambiguous, not stored): {selector}")
                return Resolution(locator=locator, strategy=self.name, selector=selector, persist=False)
        return None
