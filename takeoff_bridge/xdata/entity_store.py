"""
Entity attribute store: chunked records attached to one drawing entity.

On-entity shape of a record stored under base namespace B:
    B + "INFO"   -> [(1071, chunk_count)]
    B + "0" ...  -> [(1000, chunk text)]    one slot per chunk, index order

Writes replace the whole chunk set and clear orphan chunk slots left by a
longer previous record. Everything happens in one unit of work, so a
failure leaves the entity as it was.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from takeoff_bridge.errors import CorruptPayload, EmptyPayload
from takeoff_bridge.host.record_store import (
    INTEGER_CODES,
    STRING_CODES,
    XDATA_INT32,
    XDATA_STRING,
    RecordStore,
    TypedValue,
    UnitOfWork,
)
from takeoff_bridge.xdata.codec import ChunkCodec, EncodedPayload, join, parse
from takeoff_bridge.xdata.registry import (
    NamespaceRegistry,
    chunk_namespace,
    info_namespace,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkLayout:
    """Namespaces of one chunked record kind."""
    base: str
    marker: Optional[str] = None  # None = the info namespace

    @property
    def info(self) -> str:
        return info_namespace(self.base)

    @property
    def marker_namespace(self) -> str:
        return self.marker or self.info

    def chunk(self, index: int) -> str:
        return chunk_namespace(self.base, index)


PARTS_LAYOUT = ChunkLayout("METALPARTS", marker="METALCOMP")


@dataclass
class WriteResult:
    """Outcome of a chunked write."""
    chunk_count: int
    reclaimed: List[int] = field(default_factory=list)


class EntityAttributeStore:
    """Reads and writes chunked JSON records on entities."""

    def __init__(
        self,
        store: RecordStore,
        codec: Optional[ChunkCodec] = None,
        registry: Optional[NamespaceRegistry] = None,
    ):
        self.store = store
        self.codec = codec or ChunkCodec()
        self.registry = registry or NamespaceRegistry(store)

    # -- write -----------------------------------------------------------

    def write(
        self,
        entity: Any,
        base: str,
        record: Any,
        uow: Optional[UnitOfWork] = None,
    ) -> WriteResult:
        """Replace the record stored under `base`.

        Raises:
            ChunkCeilingExceeded: record too large; nothing is written
            HostTransactionFailure: commit failed; entity left unchanged
        """
        return self._write_payload(entity, base, self.codec.encode(record), uow)

    def write_text(
        self,
        entity: Any,
        base: str,
        text: str,
        uow: Optional[UnitOfWork] = None,
    ) -> WriteResult:
        """Store already-serialized JSON text verbatim."""
        return self._write_payload(entity, base, self.codec.encode_text(text), uow)

    def _write_payload(
        self,
        entity: Any,
        base: str,
        payload: EncodedPayload,
        uow: Optional[UnitOfWork],
    ) -> WriteResult:
        with self.store.scoped(uow) as scope:
            self.registry.ensure_chunk_set(base, self.codec.ceiling, scope)
            try:
                previous = self.chunk_count(entity, base, scope) or 0
            except CorruptPayload:
                previous = 0

            scope.set_slot(entity, info_namespace(base),
                           [TypedValue(XDATA_INT32, payload.chunk_count)])
            for index, chunk in enumerate(payload.chunks):
                scope.set_slot(entity, chunk_namespace(base, index),
                               [TypedValue(XDATA_STRING, chunk)])

            reclaimed = self.reclaim_orphans(
                scope, entity, base, payload.chunk_count, previous,
            )

        logger.debug(
            "Wrote %s: %d chunks", base, payload.chunk_count,
            extra={
                "handle": self.store.owner_key(entity),
                "chars": len(payload.text),
                "reclaimed": reclaimed,
            },
        )
        return WriteResult(chunk_count=payload.chunk_count, reclaimed=reclaimed)

    def reclaim_orphans(
        self,
        uow: UnitOfWork,
        entity: Any,
        base: str,
        keep: int,
        previous: int = 0,
    ) -> List[int]:
        """Clear populated chunk slots with index >= `keep`.

        Scans up to the codec ceiling, or further when a previous write
        (under a larger ceiling) left more chunks.

        Returns:
            Indices whose slots were cleared
        """
        reclaimed = []
        for index in range(keep, max(self.codec.ceiling, previous)):
            namespace = chunk_namespace(base, index)
            if not uow.namespace_exists(namespace):
                continue
            if uow.get_slot(entity, namespace) is not None:
                uow.set_slot(entity, namespace, ())
                reclaimed.append(index)
        return reclaimed

    def clear(
        self,
        entity: Any,
        base: str,
        uow: Optional[UnitOfWork] = None,
    ) -> List[int]:
        """Remove the record: clear the info slot and every chunk slot.

        Namespaces stay registered.

        Returns:
            Chunk indices that were cleared
        """
        with self.store.scoped(uow) as scope:
            try:
                previous = self.chunk_count(entity, base, scope) or 0
            except CorruptPayload:
                previous = 0
            if scope.get_slot(entity, info_namespace(base)) is not None:
                scope.set_slot(entity, info_namespace(base), ())
            cleared = self.reclaim_orphans(scope, entity, base, 0, previous)
        return cleared

    # -- read ------------------------------------------------------------

    def chunk_count(
        self,
        entity: Any,
        base: str,
        uow: Optional[UnitOfWork] = None,
    ) -> Optional[int]:
        """Chunk count from the info slot, or None if there is no info slot.

        Raises:
            CorruptPayload: info slot holds no integer
        """
        with self.store.scoped(uow) as scope:
            values = scope.get_slot(entity, info_namespace(base))
        if values is None:
            return None
        for value in values:
            if value.code in INTEGER_CODES:
                return int(value.value)
        raise CorruptPayload(f"Info slot {info_namespace(base)} holds no chunk count")

    def read_chunks(
        self,
        uow: UnitOfWork,
        entity: Any,
        base: str,
    ) -> Optional[List[str]]:
        """Chunk texts in index order; None when no record was ever written.

        Raises:
            CorruptPayload: an expected chunk is missing or empty
        """
        count = self.chunk_count(entity, base, uow)
        if count is None:
            return None

        chunks = []
        for index in range(count):
            values = uow.get_slot(entity, chunk_namespace(base, index)) or ()
            text = ''.join(str(v.value) for v in values if v.code in STRING_CODES)
            if not text:
                raise CorruptPayload(
                    f"Chunk {index} of {count} missing under {base}",
                    missing_index=index,
                )
            chunks.append(text)
        return chunks

    def read_text(
        self,
        entity: Any,
        base: str,
        uow: Optional[UnitOfWork] = None,
    ) -> Optional[str]:
        """Exact serialized text of the stored record, or None if absent."""
        with self.store.scoped(uow) as scope:
            chunks = self.read_chunks(scope, entity, base)
        if chunks is None:
            return None
        try:
            text = join(chunks)
        except EmptyPayload:
            return None
        parse(text)
        return text

    def read(
        self,
        entity: Any,
        base: str,
        uow: Optional[UnitOfWork] = None,
    ) -> Any:
        """Stored record, or None if absent.

        Raises:
            CorruptPayload: chunk missing or text does not parse
        """
        text = self.read_text(entity, base, uow)
        return None if text is None else parse(text)

    def has_record(self, entity: Any, base: str) -> bool:
        return bool(self.chunk_count(entity, base))
