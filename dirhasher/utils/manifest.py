"""Reading and writing checksum manifests.

A manifest holds one ``DIGEST  path`` entry per line, separated by exactly
two spaces as written by ``sha256sum``. Blank lines and lines starting with
``#`` are ignored.
"""

import io
import sys
from pathlib import Path
from typing import Any, Iterable, TextIO

from dirhasher.models.digest import DigestOutcome, ManifestEntry
from dirhasher.utils.hashing import HashAlgorithm, get_algorithm
from dirhasher.utils.logging import logger

SEPARATOR = "  "
COMMENT_PREFIX = "#"
STDIN_MARKER = "-"

# Paths that are not valid UTF-8 round-trip through lone surrogates
PATH_ERRORS = "surrogateescape"


class ManifestReadError(Exception):
    """Raised when the manifest source itself cannot be read."""

    pass


def parse_line(line: str) -> tuple[str, str] | None:
    """Split a manifest line into (digest, path).

    Args:
        line: Raw line, with or without trailing newline.

    Returns:
        Tuple of digest (uppercase) and path, or None if the line does not
        split on the two-space separator into two non-empty fields.
    """
    parts = line.strip().split(SEPARATOR, 1)
    if len(parts) != 2:
        return None

    digest, path = parts[0].strip(), parts[1].strip()
    if not digest or not path:
        return None

    return digest.upper(), path


def parse_manifest(
    stream: TextIO,
    algorithm: str | HashAlgorithm | None = None,
) -> list[ManifestEntry]:
    """Parse manifest entries from a text stream.

    Malformed lines are logged and skipped; they never abort the parse.

    Args:
        stream: Text stream to read line by line.
        algorithm: When given, digests must have this algorithm's length
            and be hexadecimal; other lines count as malformed.

    Returns:
        Entries in file order.

    Raises:
        ManifestReadError: If the stream can't be read or decoded.
    """
    if isinstance(algorithm, str):
        algorithm = get_algorithm(algorithm)

    entries: list[ManifestEntry] = []
    line_number = 0

    try:
        for line_number, line in enumerate(stream, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith(COMMENT_PREFIX):
                continue

            parsed = parse_line(stripped)
            if parsed is None:
                logger.warning(
                    f"Skipping line {line_number} due to incorrect format: {stripped}"
                )
                continue

            digest, path = parsed
            if algorithm is not None and not algorithm.is_valid_digest(digest):
                logger.warning(
                    f"Skipping line {line_number}: not a valid {algorithm.name} digest: {digest}"
                )
                continue

            entries.append(ManifestEntry(digest=digest, path=path))
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestReadError(f"Error reading manifest after line {line_number}: {e}") from e

    return entries


def read_manifest(
    source: str | Path,
    algorithm: str | HashAlgorithm | None = None,
) -> tuple[list[ManifestEntry], Path | None]:
    """Parse a manifest file, or standard input when source is ``-``.

    Returns:
        Parsed entries and the manifest path (None for standard input).

    Raises:
        ManifestReadError: If the manifest can't be opened or read.
    """
    if str(source) == STDIN_MARKER:
        logger.info("Reading digest entries from standard input")
        return parse_manifest(_tolerant(sys.stdin), algorithm), None

    manifest_path = Path(source)
    try:
        with open(manifest_path, "r", encoding="utf-8", errors=PATH_ERRORS) as f:
            return parse_manifest(f, algorithm), manifest_path
    except OSError as e:
        raise ManifestReadError(f"Cannot open manifest {manifest_path}: {e}") from e


def format_line(digest: str, path: str) -> str:
    """Format a single manifest line including the newline."""
    return f"{digest}{SEPARATOR}{path}\n"


class ManifestWriter:
    """Writes computed digests to a text sink in manifest format.

    Failed outcomes are not written; only the count is kept.
    """

    def __init__(self, sink: TextIO, close_sink: bool = False) -> None:
        """Initialize writer.

        Args:
            sink: Open text stream.
            close_sink: Close the sink when the writer is closed.
        """
        self.sink = sink
        self.close_sink = close_sink
        self.lines_written = 0
        self.skipped = 0

    @classmethod
    def open(cls, output_path: Path | None) -> "ManifestWriter":
        """Create a writer for a file, or standard output when None."""
        if output_path is None:
            return cls(_tolerant(sys.stdout))

        output_path.parent.mkdir(parents=True, exist_ok=True)
        return cls(open(output_path, "w", encoding="utf-8", errors=PATH_ERRORS, newline="\n"), close_sink=True)

    def write(self, outcome: DigestOutcome) -> bool:
        """Write one outcome.

        Returns:
            True if a line was written.
        """
        if outcome.computed_digest is None:
            self.skipped += 1
            return False

        self.sink.write(format_line(outcome.computed_digest, outcome.path))
        self.lines_written += 1
        return True

    def write_all(self, outcomes: Iterable[DigestOutcome], sort: bool = False) -> int:
        """Write several outcomes, optionally sorted by path.

        Returns:
            Number of lines written.
        """
        if sort:
            outcomes = sorted(outcomes, key=lambda o: o.path)

        return sum(1 for outcome in outcomes if self.write(outcome))

    def close(self) -> None:
        """Flush, and close the sink if owned."""
        self.sink.flush()
        if self.close_sink:
            self.sink.close()

    def __enter__(self) -> "ManifestWriter":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()


def _tolerant(stream: TextIO) -> TextIO:
    """Let a standard stream carry undecodable file names."""
    if isinstance(stream, io.TextIOWrapper) and stream.errors != PATH_ERRORS:
        stream.reconfigure(errors=PATH_ERRORS)
    return stream
