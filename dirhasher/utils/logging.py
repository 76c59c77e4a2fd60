"""Logging configuration and utilities."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dirhasher.models.digest import AggregateReport, DigestOutcome

# Create module logger
logger = logging.getLogger("dirhasher")


def setup_logging(
    level: str = "WARNING",
    log_file: Path | None = None,
    verbose: bool = False,
) -> None:
    """Configure application logging.

    Console output goes to stderr so that a manifest written to stdout is
    never interleaved with log lines.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to log file.
        verbose: If True, include timestamps and logger names.
    """
    # Set level
    log_level = getattr(logging, level.upper(), logging.WARNING)
    logger.setLevel(logging.DEBUG if log_file else log_level)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)

    if verbose:
        console_format = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(threadName)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        console_format = logging.Formatter("%(levelname)s: %(message)s")

    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Always verbose in file

        file_format = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(threadName)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)


class OperationLogger:
    """Structured per-file logging with JSONL output."""

    def __init__(self, log_path: Path | None = None) -> None:
        """Initialize operation logger.

        Args:
            log_path: Path to JSONL log file. Nothing is written when None.
        """
        self.log_path = log_path
        if log_path:
            log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_outcome(self, outcome: "DigestOutcome") -> None:
        """Log the result for a single file.

        Args:
            outcome: Outcome produced by the scheduler.
        """
        if outcome.is_error:
            logger.debug(f"error: {outcome.path} - {outcome.message}")
        elif outcome.is_mismatch:
            logger.debug(f"mismatch: {outcome.path}")
        else:
            logger.debug(f"ok: {outcome.path}")

        self._append({
            "event": "outcome",
            "path": outcome.path,
            "computed_digest": outcome.computed_digest,
            "expected_digest": outcome.expected_digest,
            "matched": outcome.matched,
            "failure": outcome.failure.value if outcome.failure else None,
            "message": outcome.message,
        })

    def log_run_start(self, mode: str, total: int, workers: int, algorithm: str) -> None:
        """Log start of a calculate or check run.

        Args:
            mode: "calculate" or "check".
            total: Number of files to process.
            workers: Concurrency limit in effect.
            algorithm: Digest algorithm name.
        """
        logger.info(f"Starting {mode} ({algorithm}, {workers} workers): {total} files")

        self._append({
            "event": "run_start",
            "mode": mode,
            "total": total,
            "workers": workers,
            "algorithm": algorithm,
        })

    def log_run_complete(self, report: "AggregateReport") -> None:
        """Log completion of a run.

        Args:
            report: Final aggregate report.
        """
        logger.info(
            f"Run complete: {report.succeeded} ok, {report.mismatched} mismatched, "
            f"{report.errored} errors in {report.duration_seconds:.1f}s"
        )

        self._append({
            "event": "run_complete",
            "total": report.total,
            "succeeded": report.succeeded,
            "mismatched": report.mismatched,
            "errored": report.errored,
            "success": report.success,
            "duration_seconds": report.duration_seconds,
        })

    def _append(self, entry: dict[str, Any]) -> None:
        if not self.log_path:
            return

        entry = {"timestamp": datetime.now().isoformat(), **entry}
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
