"""Namespace registry, chunk codec, and entity/document attribute stores."""

from takeoff_bridge.xdata.codec import (
    DEFAULT_CHUNK_CEILING,
    DEFAULT_CHUNK_SIZE,
    ChunkCodec,
    EncodedPayload,
    serialize,
)
from takeoff_bridge.xdata.registry import (
    NamespaceRegistry,
    chunk_namespace,
    chunk_set_namespaces,
    info_namespace,
)
from takeoff_bridge.xdata.entity_store import (
    PARTS_LAYOUT,
    ChunkLayout,
    EntityAttributeStore,
    WriteResult,
)
from takeoff_bridge.xdata.document_store import (
    DocumentAttributeStore,
    copy_document_record,
)

__all__ = [
    "DEFAULT_CHUNK_CEILING",
    "DEFAULT_CHUNK_SIZE",
    "ChunkCodec",
    "EncodedPayload",
    "serialize",
    "NamespaceRegistry",
    "chunk_namespace",
    "chunk_set_namespaces",
    "info_namespace",
    "PARTS_LAYOUT",
    "ChunkLayout",
    "EntityAttributeStore",
    "WriteResult",
    "DocumentAttributeStore",
    "copy_document_record",
]
