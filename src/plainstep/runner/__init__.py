"""
PlainStep Runner Module

Scenario execution with retries and diagnostics, and the feature-level
runner that pools scenarios and writes the run report.
"""

from plainstep.runner.diagnostics import DiagnosticsCollector
from plainstep.runner.scenario_runner import ScenarioRunner
from plainstep.runner.runner import FeatureRunner, should_run_scenario

__all__ = [
    "DiagnosticsCollector",
    "ScenarioRunner",
    "FeatureRunner",
    "should_run_scenario",
]
