"""
PlainStep Element Resolver

Turns an element description ("password", "Login button") into one
concrete, visible element on a live page. Tiers are tried in priority
order across the main frame and every child frame:

1. Registry: the selector that last worked on this page
2. Semantic: accessibility role, label and placeholder lookups
3. Structural: fuzzy scan of all interactive elements, shadow roots included

A successful tier 2 or 3 resolution is written back to the registry.
"""

import logging
from typing import Optional

from playwright.async_api import Locator, Page

from plainstep.core.exceptions import ElementNotFoundError
from plainstep.resolver.registry import SelectorRegistry, page_identity
from plainstep.resolver.strategies import (
    ElementDescriptor,
    RegistryStrategy,
    Resolution,
    ResolutionStrategy,
    SemanticStrategy,
    StructuralScanStrategy,
)

logger = logging.getLogger(__name__)


class ElementResolver:
    """
    Resolves element descriptors to visible locators.

    Args:
        registry: Selector cache shared across resolver instances
        strategies: Ordered cascade; defaults to registry, semantic, structural
    """

    def __init__(
        self,
        registry: SelectorRegistry,
        strategies: Optional[list[ResolutionStrategy]] = None,
    ):
        self.registry = registry
        self.strategies: list[ResolutionStrategy] = strategies or [
            RegistryStrategy(registry),
            SemanticStrategy(),
            StructuralScanStrategy(),
        ]

    async def resolve(
        self,
        page: Page,
        name: str,
        element_type: Optional[str] = None,
    ) -> Locator:
        """
        Find the element a step refers to.

        Args:
            page: Live page (its child frames are searched too)
            name: Human element name from the step
            element_type: Type hint such as "button" or "input"

        Returns:
            Locator for the first visible match

        Raises:
            ElementNotFoundError: Every tier came up empty in every frame
        """
        descriptor = ElementDescriptor(name=name, element_type=element_type or "any")
        resolution = await self.resolve_descriptor(page, descriptor)
        return resolution.locator

    async def resolve_descriptor(self, page: Page, descriptor: ElementDescriptor) -> Resolution:
        page_name = page_identity(page.url)
        frames = list(page.frames)

        for strategy in self.strategies:
            resolution = await strategy.attempt_resolve(frames, descriptor, page_name)
            if resolution is None:
                continue

            if resolution.persist:
                if resolution.selector:
                    self.registry.save(page_name, descriptor.key, resolution.selector)
                else:
                    logger.debug(f"No stable selector for '{descriptor.name}', registry not updated")

            return resolution

        raise ElementNotFoundError(
            str(descriptor),
            frames_searched=len(frames),
            details={"page": page_name, "url": page.url},
        )
