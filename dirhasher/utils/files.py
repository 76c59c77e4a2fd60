"""Expansion of command-line paths into the files to hash."""

import os
from pathlib import Path
from typing import Iterable

from dirhasher.utils.logging import logger


def collect_files(
    paths: Iterable[Path | str],
    exclude: Iterable[Path] = (),
) -> list[Path]:
    """Expand files and directories into a flat list of files.

    Directories are walked recursively. Paths that can't be accessed are
    logged and skipped.

    Args:
        paths: Files or directories given by the user.
        exclude: Files to leave out (e.g. the output manifest).

    Returns:
        Files in walk order, as they were reached from the given paths.
    """
    excluded = {_resolve(p) for p in exclude}
    files: list[Path] = []

    def on_walk_error(error: OSError) -> None:
        logger.warning(f"Error accessing path {error.filename}: {error}. Skipping.")

    for raw in paths:
        path = Path(raw)
        try:
            is_dir = path.is_dir()
            if not is_dir:
                path.stat()
        except OSError as e:
            logger.warning(f"Error stating {path}: {e}. Skipping.")
            continue

        if not is_dir:
            candidates = [path]
        else:
            candidates = []
            for dirpath, dirnames, filenames in os.walk(path, onerror=on_walk_error):
                dirnames.sort()
                candidates.extend(Path(dirpath) / name for name in sorted(filenames))

        for candidate in candidates:
            if excluded and _resolve(candidate) in excluded:
                logger.debug(f"Excluding {candidate}")
                continue
            files.append(candidate)

    return files


def _resolve(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path.absolute()
