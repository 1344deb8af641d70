"""
Unit tests for error records and failure classification.
"""
from plainstep.core.error_handler import ErrorRecord, rewrite_step_error
from plainstep.core.exceptions import (
    AssertionFailedError,
    DataNotFoundError,
    UnknownActionError,
    UnrecognizedStepError,
    is_retryable,
)
from plainstep.core.models import Step

STEP = Step(keyword="When", text="Frobnicate the whatsit")


class TestRewriteStepError:
    def test_unrecognized_is_rewritten(self):
        error = rewrite_step_error(STEP, UnrecognizedStepError("Step not recognized: x"))
        assert error.message == (
            "Unrecognized steps: When Frobnicate the whatsit, "
            "Please implement this step or check the step definition."
        )

    def test_unknown_action_is_rewritten(self):
        error = rewrite_step_error(STEP, UnknownActionError("Unknown action: dance", intent="dance"))
        assert isinstance(error, UnrecognizedStepError)
        assert error.message.startswith("Unrecognized steps: ")

    def test_execution_errors_keep_their_detail(self):
        original = AssertionFailedError("URL assertion failed", expected="/a", actual="/b")
        assert rewrite_step_error(STEP, original) is original


class TestRetryability:
    def test_authoring_errors_are_final(self):
        assert not is_retryable(UnrecognizedStepError("x"))
        assert not is_retryable(DataNotFoundError("x", key="k"))

    def test_execution_and_foreign_errors_retry(self):
        assert is_retryable(AssertionFailedError("x"))
        assert is_retryable(RuntimeError("browser crashed"))


class TestErrorRecord:
    def test_from_exception(self):
        try:
            raise AssertionFailedError("URL assertion failed", expected="/a", actual="/b", details={"k": 1})
        except AssertionFailedError as e:
            record = ErrorRecord.from_exception(e, STEP)

        step_error = record.to_step_error()
        assert step_error.type == "AssertionFailedError"
        assert step_error.message == "URL assertion failed"
        assert step_error.details == {"k": 1}
        assert "AssertionFailedError" in step_error.stack_trace
        assert record.is_retryable
        assert record.step_text == "When Frobnicate the whatsit"


class TestRewrittenErrorRecord:
    def test_classifier_internals_stay_out_of_the_report(self):
        original = UnrecognizedStepError("Step not recognized: x", details={"intent": "teleport"})
        rewritten = rewrite_step_error(STEP, original)

        assert rewritten.details == {}
        assert rewritten.__cause__ is None
        step_error = ErrorRecord.from_exception(rewritten, STEP).to_step_error()
        assert step_error.details == {}
        assert "teleport" not in step_error.stack_trace
        assert "Step not recognized" not in step_error.stack_trace
