"""
PlainStep Parser Module

Reads Gherkin feature files into Feature records.
"""

from plainstep.parser.feature_parser import FeatureParser, all_tags, parse_tags

__all__ = [
    "FeatureParser",
    "all_tags",
    "parse_tags",
]
