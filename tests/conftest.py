"""Pytest configuration and shared fixtures."""

import hashlib
import threading
import time
from pathlib import Path

import pytest

from dirhasher.models.digest import ManifestEntry

SAMPLE_CONTENT = b"This is a test file for SHA256 hashing."
SAMPLE_SHA256 = "B52E9CC162A479840A909B2CFD9D0F1C5D29055A303BB389090236005D87E0E5"
SAMPLE_MD5 = "13C297AAECCE6E1F9111689E5F369681"
EMPTY_SHA256 = "E3B0C44298FC1C149AFBF4C8996FB92427AE41E4649B934CA495991B7852B855"


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    """Create notes.txt with known content."""
    path = tmp_path / "notes.txt"
    path.write_bytes(SAMPLE_CONTENT)
    return path


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Create a small directory tree with nested files."""
    root = tmp_path / "tree"
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha")
    (root / "b.bin").write_bytes(bytes(range(256)) * 1000)
    (root / "sub" / "c.txt").write_bytes(b"charlie")
    (root / "sub" / "deeper" / "d.txt").write_bytes(b"")
    return root


@pytest.fixture
def tree_digests(sample_tree: Path) -> dict[str, str]:
    """Expected uppercase SHA-256 for every file in sample_tree, keyed by relative path."""
    return {
        path.relative_to(sample_tree).as_posix(): hashlib.sha256(path.read_bytes()).hexdigest().upper()
        for path in sample_tree.rglob("*")
        if path.is_file()
    }


@pytest.fixture
def sample_manifest(sample_file: Path) -> Path:
    """Manifest next to notes.txt with a single correct entry."""
    manifest = sample_file.parent / "hashes.txt"
    manifest.write_text(f"{SAMPLE_SHA256}  notes.txt\n", encoding="utf-8")
    return manifest


@pytest.fixture
def sample_entries() -> list[ManifestEntry]:
    """Well-formed manifest entries."""
    return [
        ManifestEntry(digest="AB" * 32, path="file1.txt"),
        ManifestEntry(digest="CD" * 32, path="path/to/file2.dat"),
        ManifestEntry(digest="EF" * 32, path="name with  two spaces.txt"),
    ]


class SlowDigester:
    """Digester stub that records how many calls overlap."""

    def __init__(self, delay: float = 0.01, fail_on: set[str] | None = None) -> None:
        self.delay = delay
        self.fail_on = fail_on or set()
        self.calls = 0
        self.current = 0
        self.peak = 0
        self._lock = threading.Lock()

    def compute_digest(self, path) -> str:
        with self._lock:
            self.calls += 1
            self.current += 1
            self.peak = max(self.peak, self.current)
        try:
            time.sleep(self.delay)
            name = Path(path).name
            if name in self.fail_on:
                raise FileNotFoundError(2, "No such file or directory", str(path))
            return hashlib.sha256(name.encode()).hexdigest().upper()
        finally:
            with self._lock:
                self.current -= 1


@pytest.fixture
def slow_digester() -> SlowDigester:
    """Digester stub for concurrency tests."""
    return SlowDigester()


# Markers for test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
