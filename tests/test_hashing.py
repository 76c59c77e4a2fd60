"""Tests for the digest engine and resource pools."""

import errno
import hashlib
import io
from pathlib import Path

import pytest

from dirhasher.utils import hashing
from dirhasher.utils.hashing import (
    CHUNK_SIZE,
    MD5,
    SHA256,
    DigestEngine,
    HashState,
    digests_match,
    get_algorithm,
)
from dirhasher.utils.pool import ResourcePool

from conftest import EMPTY_SHA256, SAMPLE_CONTENT, SAMPLE_MD5, SAMPLE_SHA256


class FailingReader(io.BytesIO):
    """Binary handle whose second read fails with an I/O error."""

    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.reads = 0

    def readinto(self, buffer) -> int:
        self.reads += 1
        if self.reads > 1:
            raise OSError(errno.EIO, "Input/output error")
        return super().readinto(buffer)


class TestDigestEngine:
    """Tests for DigestEngine."""

    def test_known_sha256(self, sample_file: Path):
        """Test digest of known content."""
        engine = DigestEngine()
        assert engine.compute_digest(sample_file) == SAMPLE_SHA256

    def test_lowercase(self, sample_file: Path):
        """Test lowercase formatting."""
        engine = DigestEngine(uppercase=False)
        assert engine.compute_digest(sample_file) == SAMPLE_SHA256.lower()

    def test_md5(self, sample_file: Path):
        """Test MD5 as secondary algorithm."""
        engine = DigestEngine("md5")
        assert engine.compute_digest(sample_file) == SAMPLE_MD5

    def test_empty_file(self, tmp_path: Path):
        """Test digest of an empty file."""
        path = tmp_path / "empty"
        path.write_bytes(b"")
        assert DigestEngine().compute_digest(path) == EMPTY_SHA256

    def test_deterministic(self, sample_file: Path):
        """Test repeated calls give the same digest."""
        engine = DigestEngine()
        digests = {engine.compute_digest(sample_file) for _ in range(5)}
        assert digests == {SAMPLE_SHA256}

    def test_large_file_streams_in_chunks(self, tmp_path: Path):
        """Test files spanning many chunks, with a partial final chunk."""
        data = bytes(range(256)) * ((CHUNK_SIZE * 3) // 256) + b"tail"
        path = tmp_path / "large.bin"
        path.write_bytes(data)

        expected = hashlib.sha256(data).hexdigest().upper()
        assert DigestEngine().compute_digest(path) == expected

    def test_reused_state_does_not_leak(self, tmp_path: Path, sample_file: Path):
        """Test consecutive files through the same pooled state."""
        other = tmp_path / "other.txt"
        other.write_bytes(b"something else entirely")
        engine = DigestEngine()

        engine.compute_digest(other)
        assert engine.compute_digest(sample_file) == SAMPLE_SHA256
        assert engine.hash_pool.created == 1
        assert engine.buffer_pool.created == 1

    def test_dirty_pooled_state_is_reset(self, sample_file: Path):
        """Test a state left dirty by another user is reset on checkout."""
        engine = DigestEngine()
        with engine.hash_pool.acquire() as state:
            state.update(b"garbage left behind")

        assert engine.compute_digest(sample_file) == SAMPLE_SHA256

    def test_missing_file_raises(self, tmp_path: Path):
        """Test missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            DigestEngine().compute_digest(tmp_path / "non_existent_file.txt")

    def test_directory_raises(self, tmp_path: Path):
        """Test directories can't be hashed."""
        with pytest.raises(OSError):
            DigestEngine().compute_digest(tmp_path)

    def test_resources_returned_after_read_error(self, monkeypatch, sample_file: Path):
        """Test pooled state and buffer go back to their pools when a read fails mid-file."""
        engine = DigestEngine()
        handles = []

        def failing_open(path, mode="r", *args, **kwargs):
            handle = FailingReader(b"x" * (CHUNK_SIZE * 3))
            handles.append(handle)
            return handle

        with monkeypatch.context() as m:
            m.setattr(hashing, "open", failing_open, raising=False)
            with pytest.raises(OSError):
                engine.compute_digest("unreliable.bin")

        assert handles[0].reads == 2
        assert handles[0].closed
        assert engine.hash_pool.idle_count == 1
        assert engine.buffer_pool.idle_count == 1

        assert engine.compute_digest(sample_file) == SAMPLE_SHA256
        assert engine.hash_pool.created == 1
        assert engine.buffer_pool.created == 1


class TestDigestsMatch:
    """Tests for digests_match."""

    def test_case_insensitive(self):
        """Test digests compare regardless of case."""
        assert digests_match(SAMPLE_SHA256, SAMPLE_SHA256.lower()) is True

    def test_surrounding_whitespace(self):
        """Test whitespace around either digest is ignored."""
        assert digests_match(f" {SAMPLE_SHA256}\n", SAMPLE_SHA256) is True

    def test_different(self):
        """Test different digests."""
        assert digests_match(SAMPLE_SHA256, "0" * 64) is False

    def test_unknown_algorithm(self):
        """Test unsupported algorithm names."""
        with pytest.raises(ValueError, match="Unsupported algorithm"):
            DigestEngine("crc32")


class TestHashAlgorithm:
    """Tests for algorithm registry."""

    def test_lookup_is_case_insensitive(self):
        """Test algorithm lookup."""
        assert get_algorithm("SHA256") is SHA256
        assert get_algorithm("md5") is MD5

    def test_hex_length(self):
        """Test digest lengths."""
        assert SHA256.hex_length == 64
        assert MD5.hex_length == 32

    def test_is_valid_digest(self):
        """Test digest validation."""
        assert SHA256.is_valid_digest(SAMPLE_SHA256)
        assert SHA256.is_valid_digest(SAMPLE_SHA256.lower())
        assert not SHA256.is_valid_digest(SAMPLE_MD5)
        assert not SHA256.is_valid_digest("Z" * 64)


class TestHashState:
    """Tests for HashState."""

    def test_reset(self):
        """Test reset restores the initial condition."""
        state = HashState(SHA256)
        state.update(b"abc")
        state.reset()
        state.update(SAMPLE_CONTENT)
        assert state.hexdigest().upper() == hashlib.sha256(SAMPLE_CONTENT).hexdigest().upper()


class TestResourcePool:
    """Tests for ResourcePool."""

    def test_reuses_objects(self):
        """Test released objects are handed out again."""
        pool = ResourcePool(list)
        with pool.acquire() as first:
            pass
        with pool.acquire() as second:
            assert second is first
        assert pool.created == 1

    def test_reset_called_on_checkout(self):
        """Test reset runs before each use."""
        pool = ResourcePool(list, reset=list.clear)
        with pool.acquire() as items:
            items.append("stale")
        with pool.acquire() as items:
            assert items == []

    def test_released_on_exception(self):
        """Test objects return to the pool when the block raises."""
        pool = ResourcePool(list)
        with pytest.raises(RuntimeError):
            with pool.acquire():
                raise RuntimeError("boom")
        assert pool.idle_count == 1

    def test_concurrent_checkouts_are_distinct(self):
        """Test nested checkouts never share an object."""
        pool = ResourcePool(list)
        with pool.acquire() as a, pool.acquire() as b:
            assert a is not b
        assert pool.idle_count == 2

    def test_max_idle(self):
        """Test extra objects are dropped on release."""
        pool = ResourcePool(list, max_idle=1)
        with pool.acquire(), pool.acquire():
            pass
        assert pool.idle_count == 1

    def test_shrink(self):
        """Test discarding idle objects."""
        pool = ResourcePool(list)
        with pool.acquire(), pool.acquire(), pool.acquire():
            pass
        assert pool.shrink(keep=1) == 2
        assert pool.idle_count == 1
