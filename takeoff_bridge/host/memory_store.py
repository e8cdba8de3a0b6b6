"""
In-memory host record store.

Models the host's per-entity extended data and the document's named
object dictionary with plain dicts, so the codec and stores can be
exercised without a drawing file.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterator, List, Optional, Sequence, Tuple

from takeoff_bridge.host.record_store import (
    DOCUMENT_KEY,
    DocumentOwner,
    RecordStore,
    Slot,
    normalize_namespace,
)

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class MemoryEntity:
    """Stand-in for a drawing entity."""
    handle: str
    dxftype: str = "LWPOLYLINE"
    vertices: List[Tuple[float, float, float]] = field(default_factory=list)


def _point3(point: Sequence[float]) -> Tuple[float, float, float]:
    x, y, *rest = point
    return (float(x), float(y), float(rest[0]) if rest else 0.0)


class MemoryRecordStore(RecordStore):
    """Dict-backed record store."""

    def __init__(self):
        self._namespaces: Dict[str, str] = {}
        self._entities: Dict[str, MemoryEntity] = {}
        self._slots: Dict[Tuple[Hashable, str], Slot] = {}
        self._next_handle = 0x100

    def add_entity(
        self,
        dxftype: str = "LWPOLYLINE",
        vertices: Sequence[Sequence[float]] = (),
    ) -> MemoryEntity:
        """Add an entity; `vertices` are (x, y) or (x, y, z) points."""
        entity = MemoryEntity(
            handle=format(self._next_handle, "X"),
            dxftype=dxftype.upper(),
            vertices=[_point3(v) for v in vertices],
        )
        self._next_handle += 1
        self._entities[entity.handle] = entity
        return entity

    def erase_entity(self, entity: MemoryEntity) -> None:
        """Remove an entity together with all of its slots."""
        self._entities.pop(entity.handle, None)
        for key in [k for k in self._slots if k[0] == entity.handle]:
            del self._slots[key]

    def entity(self, handle: str) -> Optional[MemoryEntity]:
        return self._entities.get(handle.upper())

    @property
    def namespaces(self) -> List[str]:
        return list(self._namespaces.values())

    def slot_snapshot(self, owner: Any) -> Dict[str, Slot]:
        """All populated slots of one owner, keyed by namespace."""
        key = self.owner_key(owner)
        return {ns: values for (k, ns), values in self._slots.items() if k == key}

    # -- host primitives -------------------------------------------------

    def owner_key(self, owner: Any) -> Hashable:
        if isinstance(owner, DocumentOwner):
            return DOCUMENT_KEY
        return owner.handle

    def entities(self, dxftype: Optional[str] = None) -> Iterator[MemoryEntity]:
        for entity in list(self._entities.values()):
            if dxftype is None or entity.dxftype == dxftype.upper():
                yield entity

    def polyline_vertices(self, entity: Any) -> Optional[List[Tuple[float, float, float]]]:
        if entity.dxftype != "LWPOLYLINE":
            return None
        return list(entity.vertices)

    def _has_namespace(self, name: str) -> bool:
        return normalize_namespace(name) in self._namespaces

    def _add_namespace(self, name: str) -> None:
        self._namespaces.setdefault(normalize_namespace(name), name)

    def _read_slot(self, owner: Any, namespace: str) -> Optional[Slot]:
        return self._slots.get((self.owner_key(owner), normalize_namespace(namespace)))

    def _write_slot(self, owner: Any, namespace: str, values: Slot) -> None:
        key = (self.owner_key(owner), normalize_namespace(namespace))
        if values:
            self._slots[key] = tuple(values)
        else:
            self._slots.pop(key, None)
