"""
PlainStep Custom Exceptions

Provides a hierarchy of exceptions for proper error handling
throughout the PlainStep system.
"""

from typing import Any, Optional


class PlainStepError(Exception):
    """Base exception for all PlainStep errors."""

    # Whether re-running the same step can change the outcome
    retryable: bool = False

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Authoring errors: the step text itself is at fault
class StepDefinitionError(PlainStepError):
    """Base exception for errors caused by how a step is written."""
    pass


class UnrecognizedStepError(StepDefinitionError):
    """Step text could not be classified into any supported intent."""

    def __init__(
        self,
        message: str,
        step_text: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.step_text = step_text


class UnknownActionError(StepDefinitionError):
    """Step was classified into an intent that has no executor."""

    def __init__(
        self,
        message: str,
        intent: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.intent = intent


class DataNotFoundError(StepDefinitionError):
    """A {placeholder} in the step text names a missing test-data key."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.key = key


# Execution errors: the page did not behave as expected
class StepExecutionError(PlainStepError):
    """Base exception for errors raised while performing a step."""

    retryable = True


class ElementNotFoundError(StepExecutionError):
    """No strategy located a visible element for a descriptor."""

    def __init__(
        self,
        descriptor: str,
        frames_searched: int = 0,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            f'Element "{descriptor}" not found in main page or any of '
            f"{frames_searched} frame(s) searched",
            details,
        )
        self.descriptor = descriptor
        self.frames_searched = frames_searched


class AssertionFailedError(StepExecutionError):
    """A text or URL expectation was not met."""

    def __init__(
        self,
        message: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.expected = expected
        self.actual = actual


class ExecutionTimeoutError(StepExecutionError):
    """An underlying browser operation exceeded its time bound."""
    pass


# Infrastructure errors
class ConfigurationError(PlainStepError):
    """Invalid or missing configuration."""
    pass


class FeatureParseError(PlainStepError):
    """A feature file could not be parsed."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        line: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.file_path = file_path
        self.line = line


class ClassifierError(PlainStepError):
    """The intent classifier back-end failed."""

    retryable = True


def is_retryable(error: Exception) -> bool:
    """
    Check if a failed step attempt is worth repeating.

    Args:
        error: The exception raised by the attempt

    Returns:
        True if another attempt could succeed
    """
    if isinstance(error, PlainStepError):
        return error.retryable

    # Errors from Playwright or the event loop are treated as transient
    return True
