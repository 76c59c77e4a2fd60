"""Streaming file digests backed by pooled hash state and buffers."""

import hashlib
import string
from dataclasses import dataclass
from pathlib import Path

from dirhasher.utils.pool import ResourcePool

# Bytes read per call; bounds per-file memory regardless of file size
CHUNK_SIZE = 64 * 1024

HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class HashAlgorithm:
    """A hashlib algorithm supported for file digests."""

    name: str
    digest_size: int  # bytes

    @property
    def hex_length(self) -> int:
        """Length of the hexadecimal digest."""
        return self.digest_size * 2

    def new(self) -> "hashlib._Hash":
        """Create a fresh hashlib object."""
        return hashlib.new(self.name)

    def is_valid_digest(self, digest: str) -> bool:
        """Check that a string looks like a digest of this algorithm."""
        return len(digest) == self.hex_length and all(c in HEX_DIGITS for c in digest)


SHA256 = HashAlgorithm("sha256", 32)
# Lower assurance, kept for comparison with legacy manifests
MD5 = HashAlgorithm("md5", 16)

ALGORITHMS: dict[str, HashAlgorithm] = {
    SHA256.name: SHA256,
    MD5.name: MD5,
}

DEFAULT_ALGORITHM = SHA256.name


def get_algorithm(name: str) -> HashAlgorithm:
    """Look up a supported algorithm by name (case-insensitive).

    Raises:
        ValueError: If the algorithm is not supported.
    """
    try:
        return ALGORITHMS[name.lower()]
    except KeyError:
        supported = ", ".join(sorted(ALGORITHMS))
        raise ValueError(f"Unsupported algorithm: {name} (supported: {supported})") from None


def digests_match(computed: str, expected: str) -> bool:
    """Compare two hex digests, ignoring case and surrounding whitespace."""
    return computed.strip().upper() == expected.strip().upper()


class HashState:
    """Incremental hash that can be reset and reused.

    hashlib objects cannot be reset in place, so a pristine object is kept
    and copied on every reset.
    """

    def __init__(self, algorithm: HashAlgorithm) -> None:
        self.algorithm = algorithm
        self._pristine = algorithm.new()
        self._hash = self._pristine.copy()

    def reset(self) -> None:
        """Return to the initial condition."""
        self._hash = self._pristine.copy()

    def update(self, data: bytes | memoryview) -> None:
        self._hash.update(data)

    def hexdigest(self) -> str:
        return self._hash.hexdigest()


class DigestEngine:
    """Computes file digests using pooled hash state and read buffers.

    The engine is safe to share between threads: every call checks out its
    own hash state and buffer.
    """

    def __init__(
        self,
        algorithm: str | HashAlgorithm = DEFAULT_ALGORITHM,
        uppercase: bool = True,
        hash_pool: ResourcePool[HashState] | None = None,
        buffer_pool: ResourcePool[bytearray] | None = None,
    ) -> None:
        """Initialize digest engine.

        Args:
            algorithm: Algorithm name or instance.
            uppercase: Format digests as uppercase hex (lowercase otherwise).
            hash_pool: Pool of HashState objects for this algorithm. A new
                pool is created when omitted.
            buffer_pool: Pool of CHUNK_SIZE read buffers. A new pool is
                created when omitted.
        """
        if isinstance(algorithm, str):
            algorithm = get_algorithm(algorithm)
        self.algorithm = algorithm
        self.uppercase = uppercase
        self.hash_pool = hash_pool or ResourcePool(
            lambda: HashState(self.algorithm),
            reset=HashState.reset,
        )
        self.buffer_pool = buffer_pool or ResourcePool(lambda: bytearray(CHUNK_SIZE))

    def compute_digest(self, path: Path | str) -> str:
        """Compute the digest of a file.

        Args:
            path: Path to file.

        Returns:
            Hex digest in the configured case.

        Raises:
            FileNotFoundError: If file doesn't exist.
            OSError: If file can't be opened or read.
        """
        with open(path, "rb") as handle:
            with self.hash_pool.acquire() as state, self.buffer_pool.acquire() as buffer:
                with memoryview(buffer) as view:
                    while True:
                        count = handle.readinto(view)
                        if not count:
                            break
                        state.update(view[:count])
                digest = state.hexdigest()

        return digest.upper() if self.uppercase else digest.lower()
