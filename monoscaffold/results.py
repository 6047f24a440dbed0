"""Aggregate outcome of a scaffolding run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from monoscaffold.builder.step_runner import StepResult


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class PipelineOutcome:
    """All step results of a run plus its terminal status.

    ``install_result`` is kept apart from ``results``: a failed install
    leaves the status untouched because installing is best effort.
    """

    status: OutcomeStatus
    results: list[StepResult] = field(default_factory=list)
    failed_step: str | None = None
    reason: str | None = None
    install_result: StepResult | None = None
    files_written: list[str] = field(default_factory=list)

    @classmethod
    def success(
        cls,
        results: list[StepResult] | None = None,
        files_written: list[str] | None = None,
    ) -> "PipelineOutcome":
        return cls(
            status=OutcomeStatus.SUCCESS,
            results=list(results or []),
            files_written=list(files_written or []),
        )

    @classmethod
    def failed(
        cls,
        step_id: str,
        reason: str,
        results: list[StepResult] | None = None,
    ) -> "PipelineOutcome":
        return cls(
            status=OutcomeStatus.FAILED,
            results=list(results or []),
            failed_step=step_id,
            reason=reason,
        )

    @classmethod
    def from_results(cls, results: list[StepResult]) -> "PipelineOutcome":
        """Build an outcome from a (possibly halted) step sequence."""
        for result in results:
            if not result.succeeded:
                return cls.failed(result.step_id, result.error_detail or "failed", results)
        return cls.success(results)

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @property
    def install_failed(self) -> bool:
        return self.install_result is not None and not self.install_result.succeeded
