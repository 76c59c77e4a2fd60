"""Data models for digest computation and verification."""

import errno
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Why a digest could not be computed for a file."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    IS_A_DIRECTORY = "is_a_directory"
    READ_ERROR = "read_error"
    INTERNAL = "internal"

    @classmethod
    def from_exception(cls, error: BaseException) -> "ErrorKind":
        """Map a raised exception to an error kind."""
        if isinstance(error, FileNotFoundError):
            return cls.NOT_FOUND
        if isinstance(error, PermissionError):
            return cls.PERMISSION_DENIED
        if isinstance(error, IsADirectoryError):
            return cls.IS_A_DIRECTORY
        if isinstance(error, OSError):
            if error.errno == errno.EISDIR:
                return cls.IS_A_DIRECTORY
            return cls.READ_ERROR
        return cls.INTERNAL


@dataclass(frozen=True)
class ManifestEntry:
    """Single `DIGEST  path` line of a manifest."""

    digest: str  # uppercase hex
    path: str  # as written in the manifest, trimmed


@dataclass(frozen=True)
class DigestTask:
    """Unit of work for the scheduler.

    A task without an expected digest only computes; a task with one also
    compares.
    """

    path: Path  # location on disk
    expected_digest: str | None = None
    display_path: str | None = None  # path as the user wrote it

    @property
    def name(self) -> str:
        """Path used in reports."""
        return self.display_path if self.display_path is not None else str(self.path)

    @property
    def is_check(self) -> bool:
        """True when the task compares against an expected digest."""
        return self.expected_digest is not None


@dataclass(frozen=True)
class DigestOutcome:
    """Result of executing one DigestTask."""

    path: str
    computed_digest: str | None = None
    expected_digest: str | None = None
    matched: bool | None = None  # None in calculate mode
    failure: ErrorKind | None = None
    message: str | None = None

    @property
    def is_error(self) -> bool:
        """No digest could be computed."""
        return self.failure is not None

    @property
    def is_mismatch(self) -> bool:
        """Digest computed but differs from the expected one."""
        return self.failure is None and self.matched is False

    @property
    def ok(self) -> bool:
        """Digest computed and, if an expectation existed, matched."""
        return self.failure is None and self.matched is not False

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.is_error:
            return f"{self.path}: ERROR ({self.message or self.failure.value})"
        if self.is_mismatch:
            return f"{self.path}: FAILED"
        return f"{self.path}: OK"


@dataclass
class AggregateReport:
    """Running counters for a calculate or check run.

    Only the reconciler mutates a report, from a single thread.
    """

    total: int
    succeeded: int = 0
    mismatched: int = 0
    errored: int = 0
    problems: list[DigestOutcome] = field(default_factory=list)
    duration_seconds: float = 0.0

    def record(self, outcome: DigestOutcome) -> None:
        """Fold one outcome into the counters."""
        if outcome.is_error:
            self.errored += 1
            self.problems.append(outcome)
        elif outcome.is_mismatch:
            self.mismatched += 1
            self.problems.append(outcome)
        else:
            self.succeeded += 1

    @property
    def observed(self) -> int:
        """Number of outcomes recorded so far."""
        return self.succeeded + self.mismatched + self.errored

    @property
    def success(self) -> bool:
        """True when nothing mismatched and nothing failed."""
        return self.mismatched == 0 and self.errored == 0

    @property
    def exit_code(self) -> int:
        """Process exit status for this report."""
        return 0 if self.success else 1

    @property
    def files_per_second(self) -> float:
        """Throughput over the whole run."""
        if self.duration_seconds <= 0:
            return 0.0
        return self.observed / self.duration_seconds
