"""Utility modules for hashing, manifests, pooling, and logging."""

from dirhasher.utils.hashing import DigestEngine, get_algorithm
from dirhasher.utils.manifest import ManifestReadError, ManifestWriter, parse_manifest
from dirhasher.utils.pool import ResourcePool

__all__ = [
    "DigestEngine",
    "get_algorithm",
    "ManifestReadError",
    "ManifestWriter",
    "parse_manifest",
    "ResourcePool",
]
