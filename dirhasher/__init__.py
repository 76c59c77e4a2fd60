"""Concurrent file digest calculation and verification."""

__app_name__ = "dirhasher"
__version__ = "0.1.0"
