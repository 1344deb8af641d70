"""
PlainStep Core Module

Configuration, data models, the exception hierarchy and the shared
run and scenario contexts.
"""

from plainstep.core.config import (
    BrowserName,
    ClassifierKind,
    LLMProvider,
    Settings,
    load_settings,
)
from plainstep.core.models import (
    Background,
    Embedding,
    Feature,
    FeatureResult,
    RunStatus,
    RunSummary,
    Scenario,
    ScenarioPhase,
    ScenarioResult,
    Step,
    StepError,
    StepResult,
    StepStatus,
    TestReport,
)
from plainstep.core.exceptions import (
    AssertionFailedError,
    ClassifierError,
    ConfigurationError,
    DataNotFoundError,
    ElementNotFoundError,
    ExecutionTimeoutError,
    FeatureParseError,
    PlainStepError,
    StepDefinitionError,
    StepExecutionError,
    UnknownActionError,
    UnrecognizedStepError,
    is_retryable,
)
from plainstep.core.error_handler import ErrorRecord, rewrite_step_error

__all__ = [
    # Config
    "BrowserName",
    "ClassifierKind",
    "LLMProvider",
    "Settings",
    "load_settings",
    # Models
    "Background",
    "Embedding",
    "Feature",
    "FeatureResult",
    "RunStatus",
    "RunSummary",
    "Scenario",
    "ScenarioPhase",
    "ScenarioResult",
    "Step",
    "StepError",
    "StepResult",
    "StepStatus",
    "TestReport",
    # Exceptions
    "AssertionFailedError",
    "ClassifierError",
    "ConfigurationError",
    "DataNotFoundError",
    "ElementNotFoundError",
    "ExecutionTimeoutError",
    "FeatureParseError",
    "PlainStepError",
    "StepDefinitionError",
    "StepExecutionError",
    "UnknownActionError",
    "UnrecognizedStepError",
    "is_retryable",
    # Error handling
    "ErrorRecord",
    "rewrite_step_error",
]
