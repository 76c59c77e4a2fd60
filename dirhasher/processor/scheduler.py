"""Bounded concurrent execution of digest tasks."""

import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from dirhasher.models.digest import DigestOutcome, DigestTask, ErrorKind, ManifestEntry
from dirhasher.utils.hashing import digests_match
from dirhasher.utils.logging import logger

DEFAULT_WORKERS = 15
MAX_WORKERS = 50


class Digester(Protocol):
    """Anything that can compute a file digest."""

    def compute_digest(self, path: Path | str) -> str: ...


def clamp_workers(workers: int | None) -> int:
    """Bring a requested worker count into [1, MAX_WORKERS].

    None selects DEFAULT_WORKERS. Out-of-range values are clamped, not
    rejected.
    """
    if workers is None:
        return DEFAULT_WORKERS
    return max(1, min(workers, MAX_WORKERS))


def resolve_entry_path(entry_path: str, manifest_path: Path | None) -> Path:
    """Locate a manifest entry on disk.

    Absolute paths are used as-is. Relative paths are taken relative to the
    directory holding the manifest, or to the current working directory when
    the manifest was read from standard input.

    Args:
        entry_path: Path as written in the manifest.
        manifest_path: Manifest file, or None for standard input.

    Returns:
        Normalized path to the file.
    """
    path = Path(entry_path)
    if path.is_absolute():
        return Path(os.path.normpath(path))

    base = manifest_path.parent if manifest_path is not None else Path(".")
    return Path(os.path.normpath(base / path))


def tasks_from_manifest(
    entries: Iterable[ManifestEntry],
    manifest_path: Path | None,
) -> list[DigestTask]:
    """Build check-mode tasks for manifest entries."""
    return [
        DigestTask(
            path=resolve_entry_path(entry.path, manifest_path),
            expected_digest=entry.digest,
            display_path=entry.path,
        )
        for entry in entries
    ]


def tasks_from_files(files: Iterable[Path]) -> list[DigestTask]:
    """Build calculate-mode tasks for files."""
    return [DigestTask(path=path) for path in files]


class BoundedScheduler:
    """Runs digest tasks on a fixed number of worker threads.

    Every task is submitted up front. An admission gate lets at most
    ``workers`` tasks do file I/O at the same time; outcomes are delivered in
    completion order, exactly one per task.
    """

    def __init__(self, engine: Digester, workers: int | None = DEFAULT_WORKERS) -> None:
        """Initialize scheduler.

        Args:
            engine: Digest engine shared by all workers.
            workers: Requested concurrency, clamped to [1, MAX_WORKERS].
        """
        self.engine = engine
        self.workers = clamp_workers(workers)
        self._gate = threading.BoundedSemaphore(self.workers)
        self._stats_lock = threading.Lock()
        self._in_flight = 0
        self.max_in_flight = 0

    def run(self, tasks: Iterable[DigestTask]) -> Iterator[DigestOutcome]:
        """Execute tasks and yield their outcomes as they complete.

        The iterator yields exactly one outcome per task and returns only
        after every worker has finished. Order is not preserved; sort the
        collected outcomes if a stable order is needed.

        Args:
            tasks: Tasks to execute.

        Yields:
            DigestOutcome for each task.
        """
        tasks = list(tasks)
        if not tasks:
            return

        results: queue.Queue[DigestOutcome] = queue.Queue(maxsize=len(tasks))
        logger.debug(f"Scheduling {len(tasks)} tasks on {self.workers} workers")

        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="dirhasher")
        try:
            for task in tasks:
                executor.submit(self._execute, task, results)

            for _ in range(len(tasks)):
                yield results.get()
        finally:
            executor.shutdown(wait=True)

    def _execute(self, task: DigestTask, results: "queue.Queue[DigestOutcome]") -> None:
        """Worker body: always emits exactly one outcome."""
        outcome: DigestOutcome | None = None
        try:
            with self._gate:
                self._enter()
                try:
                    outcome = self._digest(task)
                finally:
                    self._leave()
        except OSError as e:
            outcome = DigestOutcome(
                path=task.name,
                expected_digest=task.expected_digest,
                failure=ErrorKind.from_exception(e),
                message=f"Error getting hash for {task.name}: {e.strerror or e}",
            )
        except Exception as e:
            logger.exception(f"Unexpected error hashing {task.name}")
            outcome = DigestOutcome(
                path=task.name,
                expected_digest=task.expected_digest,
                failure=ErrorKind.INTERNAL,
                message=f"Unexpected error for {task.name}: {e}",
            )
        finally:
            if outcome is None:
                outcome = DigestOutcome(
                    path=task.name,
                    expected_digest=task.expected_digest,
                    failure=ErrorKind.INTERNAL,
                    message=f"Hashing interrupted for {task.name}",
                )
            results.put(outcome)

    def _digest(self, task: DigestTask) -> DigestOutcome:
        computed = self.engine.compute_digest(task.path)

        if not task.is_check:
            return DigestOutcome(path=task.name, computed_digest=computed)

        matched = digests_match(computed, task.expected_digest)
        return DigestOutcome(
            path=task.name,
            computed_digest=computed,
            expected_digest=task.expected_digest,
            matched=matched,
            message=None if matched else (
                f"Hash values do not match for {task.name}: "
                f"expecting {task.expected_digest}, got {computed}"
            ),
        )

    def _enter(self) -> None:
        with self._stats_lock:
            self._in_flight += 1
            if self._in_flight > self.max_in_flight:
                self.max_in_flight = self._in_flight

    def _leave(self) -> None:
        with self._stats_lock:
            self._in_flight -= 1
