"""
Document attribute store: single-slot records scoped to the whole drawing.

Records live in XRECORDs of the named-object dictionary and are never
chunked; callers keep them within one slot. Two shapes are in use:
- a 3-D point as three reals (code 40)
- a JSON document as one text value (code 1)

Copying between documents runs one unit of work per document and is not
atomic across them: if the target write fails after the source read, the
copy is lost and the target keeps its previous record.
"""

import logging
from typing import Any, Iterable, Optional, Sequence, Tuple

from takeoff_bridge.errors import CorruptPayload
from takeoff_bridge.host.record_store import (
    DOCUMENT,
    REAL,
    REAL_CODES,
    STRING_CODES,
    TEXT,
    RecordStore,
    Slot,
    TypedValue,
    UnitOfWork,
)
from takeoff_bridge.xdata.codec import parse, serialize
from takeoff_bridge.xdata.registry import NamespaceRegistry

logger = logging.getLogger(__name__)

Point3 = Tuple[float, float, float]


def key_namespace(doc_key: str) -> str:
    """Namespace registered for a document key: its top-level dictionary."""
    return doc_key.split('/', 1)[0]


class DocumentAttributeStore:
    """Reads and writes single-slot document records."""

    def __init__(self, store: RecordStore, registry: Optional[NamespaceRegistry] = None):
        self.store = store
        self.registry = registry or NamespaceRegistry(store)

    def write(
        self,
        doc_key: str,
        values: Iterable[Tuple[int, Any]],
        uow: Optional[UnitOfWork] = None,
    ) -> None:
        """Register the key's namespace and overwrite the slot."""
        values = list(values)
        with self.store.scoped(uow) as scope:
            self.registry.ensure(key_namespace(doc_key), scope)
            scope.set_slot(DOCUMENT, doc_key, values)
        logger.debug("Wrote document record %s", doc_key, extra={"values": len(values)})

    def read(self, doc_key: str, uow: Optional[UnitOfWork] = None) -> Optional[Slot]:
        with self.store.scoped(uow) as scope:
            return scope.get_slot(DOCUMENT, doc_key)

    def clear(self, doc_key: str, uow: Optional[UnitOfWork] = None) -> None:
        with self.store.scoped(uow) as scope:
            if scope.get_slot(DOCUMENT, doc_key) is not None:
                scope.set_slot(DOCUMENT, doc_key, ())

    # -- JSON records ----------------------------------------------------

    def write_json(self, doc_key: str, record: Any, uow: Optional[UnitOfWork] = None) -> None:
        if record is None:
            self.clear(doc_key, uow)
            return
        self.write(doc_key, [TypedValue(TEXT, serialize(record))], uow)

    def read_json(self, doc_key: str, uow: Optional[UnitOfWork] = None) -> Any:
        """Stored JSON record, or None if absent.

        Raises:
            CorruptPayload: slot holds no text or the text does not parse
        """
        values = self.read(doc_key, uow)
        if values is None:
            return None
        for value in values:
            if value.code in STRING_CODES:
                return parse(str(value.value))
        raise CorruptPayload(f"Document record {doc_key} holds no text")

    # -- point records ---------------------------------------------------

    def write_point(
        self,
        doc_key: str,
        point: Sequence[float],
        uow: Optional[UnitOfWork] = None,
    ) -> None:
        if len(point) != 3:
            raise ValueError(f"Expected a 3-D point, got {len(point)} coordinates")
        self.write(doc_key, [TypedValue(REAL, float(c)) for c in point], uow)

    def read_point(self, doc_key: str, uow: Optional[UnitOfWork] = None) -> Optional[Point3]:
        """Stored point, or None if absent.

        Raises:
            CorruptPayload: slot does not start with three reals
        """
        values = self.read(doc_key, uow)
        if values is None:
            return None
        if len(values) < 3 or any(v.code not in REAL_CODES for v in values[:3]):
            raise CorruptPayload(f"Document record {doc_key} is not a 3-D point")
        x, y, z = (float(v.value) for v in values[:3])
        return x, y, z


def copy_document_record(
    source: DocumentAttributeStore,
    target: DocumentAttributeStore,
    doc_key: str,
) -> bool:
    """Copy one document record between drawings.

    Returns:
        False if the source holds no record (target untouched)
    """
    values = source.read(doc_key)
    if values is None:
        return False
    target.write(doc_key, values)
    logger.info("Copied document record %s", doc_key)
    return True
