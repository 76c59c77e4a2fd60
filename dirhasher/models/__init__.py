"""Data models for digest computation and verification."""

from dirhasher.models.digest import (
    AggregateReport,
    DigestOutcome,
    DigestTask,
    ErrorKind,
    ManifestEntry,
)

__all__ = ["ManifestEntry", "DigestTask", "DigestOutcome", "ErrorKind", "AggregateReport"]
