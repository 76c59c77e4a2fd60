"""Aggregation of digest outcomes into a run report."""

import time
from typing import Callable, Iterable

from dirhasher.models.digest import AggregateReport, DigestOutcome
from dirhasher.utils.logging import OperationLogger, logger


class ReconciliationError(Exception):
    """Raised when fewer outcomes arrive than tasks were scheduled."""

    pass


class Reconciler:
    """Consumes an outcome stream and decides whether the run succeeded.

    Workers only report per-file outcomes; overall success is decided here.
    """

    def __init__(self, operation_logger: OperationLogger | None = None) -> None:
        """Initialize reconciler.

        Args:
            operation_logger: Optional structured logger for each outcome.
        """
        self.op_logger = operation_logger or OperationLogger()

    def reconcile(
        self,
        outcomes: Iterable[DigestOutcome],
        total: int,
        on_outcome: Callable[[DigestOutcome], None] | None = None,
    ) -> AggregateReport:
        """Count every outcome of a run.

        Never stops at the first failure, so the final counts always cover
        every task.

        Args:
            outcomes: Outcome stream, e.g. from BoundedScheduler.run().
            total: Number of tasks scheduled.
            on_outcome: Optional callback invoked for each outcome.

        Returns:
            AggregateReport with final counters.

        Raises:
            ReconciliationError: If the stream ends early.
        """
        report = AggregateReport(total=total)
        start_time = time.time()

        for outcome in outcomes:
            report.record(outcome)
            self.op_logger.log_outcome(outcome)
            if on_outcome:
                on_outcome(outcome)

        report.duration_seconds = time.time() - start_time

        if report.observed != total:
            logger.error(f"Expected {total} outcomes, received {report.observed}")
            raise ReconciliationError(
                f"Outcome stream ended after {report.observed} of {total} files"
            )

        self.op_logger.log_run_complete(report)
        return report
