"""
PlainStep Feature Runner

Main entry point for running features. Launches one browser per run and
gives every scenario its own browser context. Scenarios of a feature run
concurrently on a bounded worker pool when parallel execution is enabled,
one after another otherwise. The run always ends with a JSON report.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from playwright.async_api import Browser

from plainstep.core.context import ExecutionContext, RunContext
from plainstep.core.error_handler import ErrorRecord
from plainstep.core.models import (
    Feature,
    FeatureResult,
    RunStatus,
    Scenario,
    ScenarioResult,
    StepResult,
    StepStatus,
    TestReport,
)
from plainstep.parser.feature_parser import FeatureParser
from plainstep.runner.scenario_runner import ScenarioRunner
from plainstep.tools.browser import BrowserTool

logger = logging.getLogger(__name__)

REPORT_FILE = "test-report.json"


def _normalize_tags(tags: Optional[Iterable[str]]) -> set[str]:
    return {t.strip().lstrip("@").lower() for t in tags or [] if t.strip()}


def should_run_scenario(
    scenario_tags: Iterable[str],
    include_tags: Optional[Iterable[str]] = None,
    exclude_tags: Optional[Iterable[str]] = None,
) -> bool:
    """
    Apply tag filters to one scenario.

    Any excluded tag rules the scenario out; with include tags given, the
    scenario needs at least one of them. Matching ignores case and "@".
    """
    tags = _normalize_tags(scenario_tags)
    excluded = _normalize_tags(exclude_tags)
    included = _normalize_tags(include_tags)

    if excluded and tags & excluded:
        return False
    if included:
        return bool(tags & included)
    return True


class FeatureRunner:
    """
    Runner for parsed features.

    Args:
        run_context: Collaborators shared by the whole run
        tags: Only run scenarios carrying one of these tags
        exclude_tags: Never run scenarios carrying one of these tags
        browser_tool: Browser lifecycle; defaults to one built from settings
        scenario_runner: Step execution; defaults to one built from run_context
    """

    def __init__(
        self,
        run_context: RunContext,
        tags: Optional[list[str]] = None,
        exclude_tags: Optional[list[str]] = None,
        browser_tool: Optional[BrowserTool] = None,
        scenario_runner: Optional[ScenarioRunner] = None,
        parser: Optional[FeatureParser] = None,
    ):
        self.run_context = run_context
        self.settings = run_context.settings
        self.tags = tags or []
        self.exclude_tags = exclude_tags or []
        self.browser_tool = browser_tool or BrowserTool(self.settings)
        self.scenario_runner = scenario_runner or ScenarioRunner(run_context)
        self.parser = parser or FeatureParser()

    @property
    def report_path(self) -> Path:
        return Path(self.settings.report_dir) / REPORT_FILE

    async def run_features(self, feature_dir: str) -> TestReport:
        """Parse and run every .feature file under a directory."""
        return await self.run(self.parser.parse_directory(feature_dir))

    async def run_feature_file(self, feature_path: str) -> TestReport:
        """Parse and run a single .feature file."""
        return await self.run([self.parser.parse_file(feature_path)])

    async def run(self, features: list[Feature]) -> TestReport:
        """
        Run features in order and write the report.

        Returns:
            The report, also saved as report_dir/test-report.json
        """
        start_time = datetime.now()
        logger.info(
            f"Starting execution of {len(features)} feature(s): "
            f"environment={self.settings.environment}, base_url={self.settings.base_url}, "
            f"parallel={self.settings.parallel}, max_workers={self.settings.max_workers}"
        )
        Path(self.settings.report_dir).mkdir(parents=True, exist_ok=True)

        results: list[FeatureResult] = []
        async with self.browser_tool.get_browser() as browser:
            for feature in features:
                results.append(await self.run_feature(browser, feature))

        report = TestReport.build(
            results,
            start_time,
            environment=self.settings.environment,
            base_url=self.settings.base_url,
        )
        path = self.write_report(report)

        logger.info(f"Test execution completed. Report saved to: {path}")
        logger.info(
            f"Summary: {report.summary.passed} passed, {report.summary.failed} failed, "
            f"{report.summary.skipped} skipped."
        )
        return report

    async def run_feature(self, browser: Browser, feature: Feature) -> FeatureResult:
        started = datetime.now()
        selected = [
            s
            for s in feature.scenarios
            if should_run_scenario(feature.tags + s.tags, self.tags, self.exclude_tags)
        ]
        logger.info(
            f"Feature '{feature.name}': running {len(selected)} of {len(feature.scenarios)} scenario(s)"
        )

        if self.settings.parallel and len(selected) > 1:
            semaphore = asyncio.Semaphore(self.settings.max_workers)

            async def limited(scenario: Scenario) -> ScenarioResult:
                async with semaphore:
                    return await self.run_isolated(browser, feature, scenario)

            scenario_results = list(await asyncio.gather(*(limited(s) for s in selected)))
        else:
            scenario_results = [await self.run_isolated(browser, feature, s) for s in selected]

        result = FeatureResult(feature=feature, scenarios=scenario_results)
        result.status = result.compute_status()
        result.duration_ms = int((datetime.now() - started).total_seconds() * 1000)

        logger.info(f"Feature completed: {feature.name} ({result.status.value})")
        return result

    async def run_isolated(self, browser: Browser, feature: Feature, scenario: Scenario) -> ScenarioResult:
        """Run one scenario in a fresh browser context that is closed afterwards."""
        try:
            async with self.browser_tool.get_page(browser) as (browser_context, page):
                context = ExecutionContext(
                    page=page,
                    feature=feature,
                    scenario=scenario,
                    browser_context=browser_context,
                    environment=ExecutionContext.snapshot_environment(self.settings),
                )
                result = await self.scenario_runner.run_scenario(context)
                await self.browser_tool.stop_tracing(browser_context, scenario.name)
                result.video_path = await self.browser_tool.video_path(page)
                return result
        except Exception as e:
            # One broken scenario must not take the rest of the run down
            logger.exception(f"Scenario '{scenario.name}' aborted: {e}")
            steps = feature.background.steps if feature.background else []
            return ScenarioResult(
                scenario=scenario,
                steps=[StepResult(step=s, status=StepStatus.SKIPPED) for s in steps + scenario.steps],
                status=RunStatus.FAILED,
                end_time=datetime.now(),
                error=ErrorRecord.from_exception(e).to_step_error(),
            )

    def write_report(self, report: TestReport) -> Path:
        path = self.report_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
        return path
