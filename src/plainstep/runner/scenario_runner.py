"""
PlainStep Scenario Runner

Runs one scenario on its own page: the feature background first, then the
scenario steps, each step interpreted, resolved and executed with retries.

Lifecycle:
    NOT_STARTED -> RUNNING_BACKGROUND -> RUNNING_STEPS -> PASSED | FAILED

The first failed step ends the scenario; every step after it (including
all scenario steps after a background failure) is recorded as skipped.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from plainstep.core.context import ExecutionContext, RunContext
from plainstep.core.error_handler import ErrorRecord, handle_step_error, rewrite_step_error
from plainstep.core.exceptions import is_retryable
from plainstep.core.models import (
    Embedding,
    RunStatus,
    ScenarioPhase,
    ScenarioResult,
    Step,
    StepResult,
    StepStatus,
)
from plainstep.runner.diagnostics import DiagnosticsCollector
from plainstep.tools.actions import ActionExecutor

logger = logging.getLogger(__name__)

FIRST_FAILURE = "FIRST_FAILURE"
FINAL_FAILURE = "FINAL_FAILURE"

ExecutorFactory = Callable[[Page], ActionExecutor]
Sleep = Callable[[float], Awaitable[None]]


class ScenarioRunner:
    """
    Executes scenarios against pages supplied by the caller.

    Args:
        run_context: Collaborators shared by the whole run
        diagnostics: Failure capture; defaults to one rooted at report_dir
        executor_factory: Builds the ActionExecutor for a page
        sleep: Awaitable used for retry backoff
    """

    def __init__(
        self,
        run_context: RunContext,
        diagnostics: Optional[DiagnosticsCollector] = None,
        executor_factory: Optional[ExecutorFactory] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.run_context = run_context
        self.settings = run_context.settings
        self.diagnostics = diagnostics or DiagnosticsCollector(
            self.settings.report_dir,
            enable_screenshots=self.settings.enable_screenshots,
        )
        self.executor_factory = executor_factory or self._default_executor
        self.sleep = sleep

    def _default_executor(self, page: Page) -> ActionExecutor:
        return ActionExecutor(
            page,
            self.run_context.resolver,
            base_url=self.settings.base_url,
            text_timeout_ms=self.settings.timeout_ms,
        )

    async def run_scenario(self, context: ExecutionContext) -> ScenarioResult:
        """
        Run the background and steps of context.scenario on context.page.

        Never raises for step failures; they are reported in the result.
        """
        scenario = context.scenario
        feature = context.feature
        background_steps = feature.background.steps if feature.background else []
        result = ScenarioResult(scenario=scenario, start_time=datetime.now())
        started = time.monotonic()

        logger.info(f"Running scenario: {scenario.name}")

        try:
            await context.page.goto(self.settings.base_url)
        except PlaywrightError as e:
            logger.error(f"Scenario '{scenario.name}' could not open {self.settings.base_url}: {e}")
            result.error = ErrorRecord.from_exception(e).to_step_error()
            result.steps = [self._skipped(step) for step in background_steps + scenario.steps]
            return self._finish(result, context, started, failed=True)

        failed = False
        phases = [
            (ScenarioPhase.RUNNING_BACKGROUND, background_steps),
            (ScenarioPhase.RUNNING_STEPS, scenario.steps),
        ]
        for phase, steps in phases:
            if steps and not failed:
                self._transition(context, phase)
            for step in steps:
                if failed:
                    result.steps.append(self._skipped(step))
                    continue
                step_result = await self.execute_step_with_retries(step, context)
                result.steps.append(step_result)
                failed = step_result.status == StepStatus.FAILED

        return self._finish(result, context, started, failed=failed)

    async def execute_step_with_retries(self, step: Step, context: ExecutionContext) -> StepResult:
        """
        Execute one step with up to settings.retries extra attempts.

        Diagnostics are captured on the first failed attempt and once more
        when the final attempt fails, if more than one attempt ran.
        Authoring errors are not retried.
        """
        max_attempts = self.settings.retries + 1
        embeddings: list[Embedding] = []
        started = time.monotonic()
        last_error: Optional[Exception] = None
        attempts = 0

        for attempt in range(1, max_attempts + 1):
            attempts = attempt
            try:
                await self.execute_step(step, context)
                return StepResult(
                    step=step,
                    status=StepStatus.PASSED,
                    duration_ms=self._elapsed_ms(started),
                    attempts=attempts,
                    embeddings=embeddings,
                )
            except Exception as e:
                last_error = rewrite_step_error(step, e)
                handle_step_error(last_error, step, attempt)

            if attempt == 1:
                embeddings.extend(await self.diagnostics.capture(context.page, step, FIRST_FAILURE))

            if not is_retryable(last_error):
                logger.warning(f"Not retrying authoring error for step: {step.full_text}")
                break

            if attempt < max_attempts:
                logger.warning(
                    f"Step failed, retrying ({attempt}/{self.settings.retries}): {step.full_text}"
                )
                await self.sleep(self.settings.retry_backoff_ms / 1000)

        if attempts > 1:
            embeddings.extend(await self.diagnostics.capture(context.page, step, FINAL_FAILURE))

        return StepResult(
            step=step,
            status=StepStatus.FAILED,
            duration_ms=self._elapsed_ms(started),
            attempts=attempts,
            error=ErrorRecord.from_exception(last_error, step).to_step_error(),
            embeddings=embeddings,
        )

    async def execute_step(self, step: Step, context: ExecutionContext) -> None:
        """Interpret and perform one step once."""
        logger.info(f"Executing: {step.full_text}")
        action = await self.run_context.interpreter.interpret(step.full_text)
        logger.info(
            f"Parsed step action: {action.intent.value}, locator: {action.locator}, "
            f"elementType: {action.element_type.value if action.element_type else None}"
        )
        await self.executor_factory(context.page).execute(action)

    @staticmethod
    def _skipped(step: Step) -> StepResult:
        return StepResult(step=step, status=StepStatus.SKIPPED)

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)

    @staticmethod
    def _transition(context: ExecutionContext, phase: ScenarioPhase) -> None:
        logger.debug(f"Scenario '{context.scenario.name}': {context.phase.value} -> {phase.value}")
        context.phase = phase

    def _finish(
        self,
        result: ScenarioResult,
        context: ExecutionContext,
        started: float,
        failed: bool,
    ) -> ScenarioResult:
        self._transition(context, ScenarioPhase.FAILED if failed else ScenarioPhase.PASSED)
        result.status = RunStatus.FAILED if failed else result.compute_status()
        result.end_time = datetime.now()
        result.duration_ms = self._elapsed_ms(started)
        logger.info(f"Scenario {result.status.value}: {context.scenario.name}")
        return result
