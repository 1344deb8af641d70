"""
PlainStep Resolver Module

Locates the page element a step refers to, with a per-page selector
registry in front of semantic and structural fallbacks.
"""

from plainstep.resolver.registry import SelectorRegistry, descriptor_key, page_identity
from plainstep.resolver.dom_scanner import DOMScanner, ScannedElement, element_matches
from plainstep.resolver.strategies import (
    ElementDescriptor,
    RegistryStrategy,
    Resolution,
    ResolutionStrategy,
    SemanticStrategy,
    StructuralScanStrategy,
)
from plainstep.resolver.element_resolver import ElementResolver

__all__ = [
    # Registry
    "SelectorRegistry",
    "descriptor_key",
    "page_identity",
    # Structural scan
    "DOMScanner",
    "ScannedElement",
    "element_matches",
    # Strategies
    "ElementDescriptor",
    "RegistryStrategy",
    "Resolution",
    "ResolutionStrategy",
    "SemanticStrategy",
    "StructuralScanStrategy",
    # Resolver
    "ElementResolver",
]
