"""
PlainStep Data Models

Defines the feature records produced by the parser and the result records
produced by the runners and consumed by reporting.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

StepKeyword = Literal["Given", "When", "Then", "And", "But"]


class StepStatus(str, Enum):
    """Status of an individual step."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    PENDING = "pending"


class RunStatus(str, Enum):
    """Rolled-up status of a scenario or feature."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ScenarioPhase(str, Enum):
    """Lifecycle of one scenario execution."""

    NOT_STARTED = "not_started"
    RUNNING_BACKGROUND = "running_background"
    RUNNING_STEPS = "running_steps"
    PASSED = "passed"
    FAILED = "failed"


class Step(BaseModel):
    """A single Gherkin step."""

    keyword: StepKeyword
    text: str
    line: int = 0

    @property
    def full_text(self) -> str:
        """Keyword and body, the form handed to the interpreter."""
        return f"{self.keyword} {self.text}"


class Background(BaseModel):
    """Steps run before every scenario of a feature."""

    steps: list[Step] = Field(default_factory=list)
    line: int = 0


class Scenario(BaseModel):
    """A named sequence of steps."""

    name: str
    steps: list[Step] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    line: int = 0


class Feature(BaseModel):
    """A parsed feature file."""

    name: str = ""
    description: Optional[str] = None
    background: Optional[Background] = None
    scenarios: list[Scenario] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    file_path: str = ""


class Embedding(BaseModel):
    """An attachment carried by a result, base64 encoded."""

    data: str
    mime_type: str
    name: Optional[str] = None


class StepError(BaseModel):
    """Serialized form of the exception that failed a step."""

    type: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    stack_trace: str = ""


class StepResult(BaseModel):
    """Result of executing one step (after retries)."""

    step: Step
    status: StepStatus
    duration_ms: int = 0
    attempts: int = 0
    error: Optional[StepError] = None
    embeddings: list[Embedding] = Field(default_factory=list)


def rollup_status(statuses: list[str]) -> RunStatus:
    """Failed if anything failed, skipped if nothing ran, passed otherwise."""
    if any(s == StepStatus.FAILED.value for s in statuses):
        return RunStatus.FAILED
    if not any(s == StepStatus.PASSED.value for s in statuses):
        return RunStatus.SKIPPED
    return RunStatus.PASSED


class ScenarioResult(BaseModel):
    """Result of executing one scenario."""

    scenario: Scenario
    steps: list[StepResult] = Field(default_factory=list)
    status: RunStatus = RunStatus.SKIPPED
    duration_ms: int = 0
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    video_path: Optional[str] = None
    embeddings: list[Embedding] = Field(default_factory=list)
    # Failure outside any step, e.g. the opening navigation
    error: Optional[StepError] = None

    def compute_status(self) -> RunStatus:
        """Derive the scenario status from its step results."""
        return rollup_status([r.status.value for r in self.steps])


class FeatureResult(BaseModel):
    """Result of executing all selected scenarios of a feature."""

    feature: Feature
    scenarios: list[ScenarioResult] = Field(default_factory=list)
    status: RunStatus = RunStatus.SKIPPED
    duration_ms: int = 0

    def compute_status(self) -> RunStatus:
        """Derive the feature status from its scenario results."""
        if any(s.status == RunStatus.FAILED for s in self.scenarios):
            return RunStatus.FAILED
        if not self.scenarios:
            return RunStatus.SKIPPED
        return RunStatus.PASSED


class RunSummary(BaseModel):
    """Scenario counts for a whole run."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0


class TestReport(BaseModel):
    """Everything a reporter needs to render a run."""

    __test__ = False  # not a pytest test class

    features: list[FeatureResult] = Field(default_factory=list)
    summary: RunSummary = Field(default_factory=RunSummary)
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    environment: str = ""
    base_url: str = ""

    @classmethod
    def build(
        cls,
        features: list[FeatureResult],
        start_time: datetime,
        environment: str = "",
        base_url: str = "",
    ) -> "TestReport":
        """Assemble a report and its summary from feature results."""
        end_time = datetime.now()
        scenarios = [s for f in features for s in f.scenarios]
        summary = RunSummary(
            total=len(scenarios),
            passed=sum(1 for s in scenarios if s.status == RunStatus.PASSED),
            failed=sum(1 for s in scenarios if s.status == RunStatus.FAILED),
            skipped=sum(1 for s in scenarios if s.status == RunStatus.SKIPPED),
            duration_ms=int((end_time - start_time).total_seconds() * 1000),
        )
        return cls(
            features=features,
            summary=summary,
            start_time=start_time,
            end_time=end_time,
            environment=environment,
            base_url=base_url,
        )
