"""
Error taxonomy for entity and document attribute storage.

Reads against a namespace that was never registered are not errors:
callers see "record absent" (None). NamespaceNotRegistered is raised only
by explicit lookups that require the namespace to exist.
"""

from typing import Optional


class AttributeStoreError(Exception):
    """Base class for attribute storage failures."""


class NamespaceNotRegistered(AttributeStoreError):
    """Namespace is missing from the document's APPID table."""

    def __init__(self, namespace: str):
        super().__init__(f"Namespace not registered: {namespace!r}")
        self.namespace = namespace


class CorruptPayload(AttributeStoreError):
    """Stored payload cannot be reassembled or parsed."""

    def __init__(self, message: str, missing_index: Optional[int] = None):
        super().__init__(message)
        self.missing_index = missing_index


class EmptyPayload(AttributeStoreError):
    """Chunk set holds zero chunks: the record is absent."""


class ChunkCeilingExceeded(AttributeStoreError):
    """Serialized record needs more chunks than the configured ceiling."""

    def __init__(self, required: int, ceiling: int):
        super().__init__(
            f"Record needs {required} chunks, ceiling is {ceiling}"
        )
        self.required = required
        self.ceiling = ceiling


class HostTransactionFailure(AttributeStoreError):
    """The host could not commit a unit of work; prior state was restored."""
