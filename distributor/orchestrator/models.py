"""Orchestrator data models."""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple

from ..models import DistributionResult


class RunMode(Enum):
    """State of a batch run."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunMode.STOPPED, RunMode.COMPLETED, RunMode.FAILED)


COMPLETED_MARKER = "Completed"
STOPPED_MARKER = "Stopped"
FAILED_MARKER = "Failed"


@dataclass(frozen=True)
class BatchState:
    """
    Immutable snapshot of a batch run.

    Every change produces a new snapshot through the ``with_*`` builders, so a
    reader holding a state never sees it change underneath.
    """
    total: int
    completed: int = 0
    failed: int = 0
    current: str = ""
    results: Tuple[DistributionResult, ...] = ()
    mode: RunMode = RunMode.IDLE

    @property
    def remaining(self) -> int:
        return self.total - self.completed - self.failed

    @property
    def processed(self) -> int:
        return self.completed + self.failed

    @property
    def all_success(self) -> bool:
        return self.failed == 0

    @property
    def is_finished(self) -> bool:
        return self.mode.is_terminal

    def with_result(self, result: DistributionResult) -> "BatchState":
        if self.remaining <= 0:
            raise ValueError("Batch already has a result for every row")
        return replace(
            self,
            completed=self.completed + (1 if result.success else 0),
            failed=self.failed + (0 if result.success else 1),
            results=self.results + (result,),
        )

    def with_current(self, current: str) -> "BatchState":
        return replace(self, current=current)

    def with_mode(self, mode: RunMode) -> "BatchState":
        return replace(self, mode=mode)
