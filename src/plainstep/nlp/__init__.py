"""
PlainStep NLP Module

Intent classification and step interpretation: from a step sentence to a
structured Action, with {placeholder} substitution from test data.
"""

from plainstep.nlp.classifier import (
    Classification,
    Entity,
    IntentClassifier,
    LLMIntentClassifier,
    PatternIntentClassifier,
    create_classifier,
)
from plainstep.nlp.interpreter import Action, ElementType, Intent, StepInterpreter
from plainstep.nlp.test_data import TestDataStore

__all__ = [
    # Classifiers
    "Classification",
    "Entity",
    "IntentClassifier",
    "LLMIntentClassifier",
    "PatternIntentClassifier",
    "create_classifier",
    # Interpreter
    "Action",
    "ElementType",
    "Intent",
    "StepInterpreter",
    # Test data
    "TestDataStore",
]
