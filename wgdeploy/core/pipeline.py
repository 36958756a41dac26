"""Ordered deployment stages and the driver that runs them.

Each stage either passes control on, or ends the run. Stages marked
best-effort never end the run: their errors are downgraded to warnings.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from wgdeploy.core.config import DeploymentConfig
from wgdeploy.core.errors import WgDeployError
from wgdeploy.core.logger import get_logger

logger = get_logger(__name__)


class StageStatus(Enum):
    OK = "ok"
    WARNING = "warning"
    FATAL = "fatal"


@dataclass
class StageResult:
    """Tagged outcome of one stage."""
    status: StageStatus
    messages: List[str] = field(default_factory=list)
    error: Optional[WgDeployError] = None

    @classmethod
    def ok(cls, *messages: str) -> "StageResult":
        return cls(StageStatus.OK, list(messages))

    @classmethod
    def warning(cls, *messages: str) -> "StageResult":
        return cls(StageStatus.WARNING, list(messages))

    @classmethod
    def fatal(cls, error: WgDeployError) -> "StageResult":
        return cls(StageStatus.FATAL, [str(error)], error)


@dataclass
class PipelineState:
    """Values produced by stages and consumed by later ones.

    ``config`` is assigned once by the first stage and never replaced.
    """
    config: Optional[DeploymentConfig] = None
    capabilities: Any = None
    container: Any = None
    ready: Optional[bool] = None
    report: Any = None


@dataclass
class Stage:
    """A named pipeline step.

    Attributes:
        name: Stage name shown in logs and diagnostics
        action: Callable taking the PipelineState; returns a StageResult or None
        best_effort: Downgrade raised errors to warnings instead of aborting
    """
    name: str
    action: Callable[[PipelineState], Optional[StageResult]]
    best_effort: bool = False


@dataclass
class PipelineOutcome:
    """Summary of a pipeline run."""
    results: List[tuple] = field(default_factory=list)  # (stage name, StageResult)
    failed_stage: Optional[str] = None
    error: Optional[WgDeployError] = None

    @property
    def succeeded(self) -> bool:
        return self.failed_stage is None

    @property
    def exit_code(self) -> int:
        return 0 if self.error is None else self.error.exit_code

    @property
    def warnings(self) -> List[str]:
        return [
            message
            for _, result in self.results
            if result.status == StageStatus.WARNING
            for message in result.messages
        ]

    @property
    def completed_stages(self) -> List[str]:
        return [name for name, result in self.results if result.status != StageStatus.FATAL]


class PipelineDriver:
    """Runs stages in order, stopping at the first fatal result."""

    def run(self, stages: List[Stage], state: PipelineState) -> PipelineOutcome:
        outcome = PipelineOutcome()

        for stage in stages:
            logger.debug(f"Stage {stage.name}: starting")
            result = self._run_stage(stage, state)
            outcome.results.append((stage.name, result))

            if result.status == StageStatus.FATAL:
                result.error.stage = stage.name
                logger.error(f"Stage {stage.name} failed: {result.error}")
                outcome.failed_stage = stage.name
                outcome.error = result.error
                break

            for message in result.messages:
                if result.status == StageStatus.WARNING:
                    logger.warning(f"{stage.name}: {message}")
                else:
                    logger.debug(f"{stage.name}: {message}")

        return outcome

    def _run_stage(self, stage: Stage, state: PipelineState) -> StageResult:
        try:
            result = stage.action(state)
        except WgDeployError as e:
            if stage.best_effort:
                return StageResult.warning(str(e))
            return StageResult.fatal(e)
        return result or StageResult.ok()
