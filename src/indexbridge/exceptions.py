"""Custom exception hierarchy for indexbridge.

These exceptions allow callers to discriminate error categories
and handle them appropriately while preserving the original context.
"""

from __future__ import annotations


class IndexBridgeError(Exception):
    """Base class for all indexbridge exceptions."""


class ConfigurationError(IndexBridgeError):
    """Raised when configuration loading or validation fails.

    Covers settings loading as well as invalid import options such as a
    non-positive ``batch_size`` or an unsupported ``delete_if`` policy.
    """


# Short alias, matches the naming used by settings code
ConfigError = ConfigurationError


class StorageError(IndexBridgeError):
    """Raised when the storage layer encounters an error (DB, filesystem, etc.)."""


class SearchError(IndexBridgeError):
    """Raised for search indexing/query issues."""


class LoadError(IndexBridgeError):
    """Raised when search hits cannot be resolved back into domain objects."""
