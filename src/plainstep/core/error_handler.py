"""
PlainStep Error Handler

Turns exceptions raised while running a step into the serializable
StepError records carried by step results, and classifies authoring
failures into one uniform message.
"""

import logging
import traceback
from typing import Any, Optional

from plainstep.core.exceptions import (
    PlainStepError,
    UnknownActionError,
    UnrecognizedStepError,
    is_retryable,
)
from plainstep.core.models import Step, StepError

logger = logging.getLogger(__name__)

UNRECOGNIZED_TEMPLATE = (
    "Unrecognized steps: {step}, Please implement this step or check the step definition."
)


class ErrorRecord:
    """Record of an error that failed a step attempt."""

    def __init__(
        self,
        error_type: str,
        message: str,
        step_text: str,
        is_retryable: bool = False,
        stack_trace: str = "",
        details: Optional[dict[str, Any]] = None,
    ):
        self.error_type = error_type
        self.message = message
        self.step_text = step_text
        self.is_retryable = is_retryable
        self.stack_trace = stack_trace
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "step_text": self.step_text,
            "is_retryable": self.is_retryable,
            "stack_trace": self.stack_trace,
            "details": self.details,
        }

    def to_step_error(self) -> StepError:
        return StepError(
            type=self.error_type,
            message=self.message,
            details=self.details,
            stack_trace=self.stack_trace,
        )

    @classmethod
    def from_exception(cls, error: BaseException, step: Optional[Step] = None) -> "ErrorRecord":
        """Create an ErrorRecord from an exception, optionally raised for a step."""
        details: dict[str, Any] = {}
        if isinstance(error, PlainStepError):
            details = dict(error.details)
            message = error.message
        else:
            message = str(error)

        return cls(
            error_type=type(error).__name__,
            message=message,
            step_text=step.full_text if step else "",
            is_retryable=is_retryable(error) if isinstance(error, Exception) else False,
            stack_trace="".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
            details=details,
        )


def unrecognized_message(step: Step) -> str:
    return UNRECOGNIZED_TEMPLATE.format(step=step.full_text)


def rewrite_step_error(step: Step, error: Exception) -> Exception:
    """
    Classify a failure before it is reported.

    Steps nothing could interpret, or interpreted into an action with no
    executor, are rewritten into the uniform "Unrecognized steps" error.
    Every other error is returned unchanged. The rewritten error carries
    no details or cause of the classifier's own.
    """
    if isinstance(error, (UnrecognizedStepError, UnknownActionError)):
        logger.debug(f"Rewriting {type(error).__name__}: {error}")
        return UnrecognizedStepError(unrecognized_message(step), step_text=step.full_text)
    return error


def handle_step_error(error: Exception, step: Step, attempt: int) -> ErrorRecord:
    """
    Log a failed step attempt and return its record.

    Args:
        error: The exception raised by the attempt
        step: Step being executed
        attempt: 1-based attempt number
    """
    record = ErrorRecord.from_exception(error, step)

    logger.error(
        f"Step '{step.full_text}' failed on attempt {attempt}: {record.message}",
        extra={
            "error_type": record.error_type,
            "is_retryable": record.is_retryable,
        },
    )
    return record
