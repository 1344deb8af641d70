"""
PlainStep Execution Context

RunContext bundles the collaborators that live for a whole run (settings,
classifier, interpreter, test data, selector registry, resolver). It is
built once and passed to the runners; nothing here is a global.

ExecutionContext is the per-scenario record: the live page, its isolated
browser context, scenario variables and a snapshot of the environment.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from playwright.async_api import BrowserContext, Page

from plainstep.core.config import Settings
from plainstep.core.models import Feature, Scenario, ScenarioPhase
from plainstep.nlp.classifier import IntentClassifier, create_classifier
from plainstep.nlp.interpreter import StepInterpreter
from plainstep.nlp.test_data import TestDataStore
from plainstep.resolver.element_resolver import ElementResolver
from plainstep.resolver.registry import SelectorRegistry

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Collaborators shared by every scenario of one run."""

    settings: Settings
    classifier: IntentClassifier
    interpreter: StepInterpreter
    test_data: TestDataStore
    registry: SelectorRegistry
    resolver: ElementResolver

    @classmethod
    def build(
        cls,
        settings: Settings,
        classifier: Optional[IntentClassifier] = None,
    ) -> "RunContext":
        """
        Wire up a run from settings.

        Args:
            settings: Settings for this run
            classifier: Overrides the classifier chosen by settings
        """
        classifier = classifier or create_classifier(settings)
        test_data = TestDataStore(settings.test_data_dir, settings.environment)
        registry = SelectorRegistry(settings.registry_dir)

        logger.info(
            f"Run context ready: environment={settings.environment}, "
            f"classifier={type(classifier).__name__}, registry={settings.registry_dir}"
        )

        return cls(
            settings=settings,
            classifier=classifier,
            interpreter=StepInterpreter(classifier, resolve_placeholder=test_data.resolve),
            test_data=test_data,
            registry=registry,
            resolver=ElementResolver(registry),
        )


@dataclass
class ExecutionContext:
    """State owned by exactly one running scenario."""

    page: Page
    feature: Feature
    scenario: Scenario
    browser_context: Optional[BrowserContext] = None
    phase: ScenarioPhase = ScenarioPhase.NOT_STARTED
    environment: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def snapshot_environment(cls, settings: Settings) -> dict[str, Any]:
        """Secrets-free view of the settings a scenario ran with."""
        return {
            "environment": settings.environment,
            "base_url": settings.base_url,
            "browser": settings.browser.value,
            "headless": settings.headless,
            "retries": settings.retries,
        }
