"""
Host record store abstraction.

A host document exposes small typed slots addressed by (owner, namespace),
where the owner is a drawing entity or the document itself, together with a
document-wide namespace table (the DXF APPID table) and units of work.

Concrete hosts implement the primitive hooks (_has_namespace,
_add_namespace, _read_slot, _write_slot, owner_key, entities). All
mutations go through a UnitOfWork, which stages namespace registrations
and slot writes and applies them on commit only.

Usage:
    store = MemoryRecordStore()
    entity = store.add_entity()

    with store.transaction() as uow:
        uow.register_namespace("METALCOMP")
        uow.set_slot(entity, "METALCOMP", [TypedValue(XDATA_STRING, "Horizontal")])
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import (
    Any, Dict, Hashable, Iterable, Iterator, List, NamedTuple, Optional, Tuple,
)

from takeoff_bridge.errors import HostTransactionFailure

logger = logging.getLogger(__name__)

# DXF group codes carried in slots
XDATA_APPID = 1001
XDATA_STRING = 1000
XDATA_REAL = 1040
XDATA_INT16 = 1070
XDATA_INT32 = 1071
TEXT = 1
REAL = 40

INTEGER_CODES = frozenset({XDATA_INT16, XDATA_INT32, 70, 90})
STRING_CODES = frozenset({XDATA_STRING, TEXT})
REAL_CODES = frozenset({XDATA_REAL, REAL})

DOCUMENT_KEY = "*DOCUMENT*"


class TypedValue(NamedTuple):
    """One typed value of a slot: DXF group code and payload."""
    code: int
    value: Any


Slot = Tuple[TypedValue, ...]


class DocumentOwner:
    """Owner of document-scoped slots."""

    def __repr__(self) -> str:
        return "DOCUMENT"


DOCUMENT = DocumentOwner()


def normalize_namespace(name: str) -> str:
    """Namespace names are case-insensitive in DXF."""
    return name.upper()


def as_typed_values(values: Iterable[Tuple[int, Any]]) -> Slot:
    return tuple(TypedValue(int(code), value) for code, value in values)


class UnitOfWork:
    """Staged set of namespace registrations and slot writes.

    Reads see the unit's own pending writes. Nothing reaches the host
    until commit(); abort() discards everything staged.
    """

    def __init__(self, store: 'RecordStore'):
        self._store = store
        self._namespaces: Dict[str, str] = {}
        self._slots: Dict[Tuple[Hashable, str], Tuple[Any, str, Slot]] = {}
        self._state = "active"

    @property
    def state(self) -> str:
        """One of 'active', 'committed', 'aborted'."""
        return self._state

    @property
    def active(self) -> bool:
        return self._state == "active"

    @property
    def store(self) -> 'RecordStore':
        return self._store

    @property
    def pending_writes(self) -> int:
        return len(self._slots)

    def _check_active(self) -> None:
        if self._state != "active":
            raise RuntimeError(f"Unit of work is already {self._state}")

    def namespace_exists(self, name: str) -> bool:
        self._check_active()
        return (normalize_namespace(name) in self._namespaces
                or self._store._has_namespace(name))

    def register_namespace(self, name: str) -> None:
        self._check_active()
        if not self.namespace_exists(name):
            self._namespaces[normalize_namespace(name)] = name

    def get_slot(self, owner: Any, namespace: str) -> Optional[Slot]:
        """Return the slot's values, or None when the slot is empty."""
        self._check_active()
        key = (self._store.owner_key(owner), normalize_namespace(namespace))
        if key in self._slots:
            values = self._slots[key][2]
        else:
            values = self._store._read_slot(owner, namespace)
        return tuple(values) if values else None

    def set_slot(
        self,
        owner: Any,
        namespace: str,
        values: Iterable[Tuple[int, Any]],
    ) -> None:
        """Stage a slot overwrite. An empty sequence clears the slot."""
        self._check_active()
        key = (self._store.owner_key(owner), normalize_namespace(namespace))
        self._slots[key] = (owner, namespace, as_typed_values(values))

    def commit(self) -> None:
        self._check_active()
        try:
            self._store._apply(
                list(self._namespaces.values()),
                list(self._slots.values()),
            )
        except HostTransactionFailure:
            self._state = "aborted"
            raise
        self._state = "committed"
        logger.debug(
            "Committed unit of work",
            extra={"namespaces": len(self._namespaces), "slots": len(self._slots)},
        )

    def abort(self) -> None:
        if self._state == "active":
            self._namespaces.clear()
            self._slots.clear()
            self._state = "aborted"


class RecordStore(ABC):
    """Named, typed slot storage over a host document."""

    # -- host primitives -------------------------------------------------

    @abstractmethod
    def _has_namespace(self, name: str) -> bool:
        ...

    @abstractmethod
    def _add_namespace(self, name: str) -> None:
        ...

    @abstractmethod
    def _read_slot(self, owner: Any, namespace: str) -> Optional[Slot]:
        ...

    @abstractmethod
    def _write_slot(self, owner: Any, namespace: str, values: Slot) -> None:
        ...

    @abstractmethod
    def owner_key(self, owner: Any) -> Hashable:
        """Stable identity of an owner (entity handle or DOCUMENT_KEY)."""

    @abstractmethod
    def entities(self, dxftype: Optional[str] = None) -> Iterator[Any]:
        """Iterate drawing entities, optionally restricted to one DXF type."""

    @abstractmethod
    def polyline_vertices(self, entity: Any) -> Optional[List[Tuple[float, float, float]]]:
        """WCS vertices of a lightweight polyline; None for other entity types."""

    # -- public interface ------------------------------------------------

    def namespace_exists(self, name: str) -> bool:
        return self._has_namespace(name)

    def register_namespace(self, name: str) -> None:
        with self.transaction() as uow:
            uow.register_namespace(name)

    def get_slot(self, owner: Any, namespace: str) -> Optional[Slot]:
        values = self._read_slot(owner, namespace)
        return tuple(values) if values else None

    def set_slot(
        self,
        owner: Any,
        namespace: str,
        values: Iterable[Tuple[int, Any]],
    ) -> None:
        with self.transaction() as uow:
            uow.set_slot(owner, namespace, values)

    def entities_with_slot(
        self,
        namespace: str,
        dxftype: Optional[str] = None,
    ) -> List[Any]:
        """Entities whose slot under `namespace` is populated."""
        return [e for e in self.entities(dxftype) if self._read_slot(e, namespace)]

    @contextmanager
    def transaction(self) -> Iterator[UnitOfWork]:
        """Scoped unit of work: commit on clean exit, abort on exception."""
        uow = UnitOfWork(self)
        try:
            yield uow
        except BaseException:
            uow.abort()
            raise
        if uow.active:
            uow.commit()

    @contextmanager
    def scoped(self, uow: Optional[UnitOfWork] = None) -> Iterator[UnitOfWork]:
        """Join the caller's unit of work, or open and own a new one."""
        if uow is not None:
            yield uow
        else:
            with self.transaction() as own:
                yield own

    def _apply(
        self,
        namespaces: List[str],
        writes: List[Tuple[Any, str, Slot]],
    ) -> None:
        """Apply staged changes; on failure restore every touched slot."""
        previous: List[Tuple[Any, str, Optional[Slot]]] = []
        try:
            for name in namespaces:
                self._add_namespace(name)
            for owner, namespace, values in writes:
                previous.append((owner, namespace, self._read_slot(owner, namespace)))
                self._write_slot(owner, namespace, values)
        except Exception as exc:
            for owner, namespace, values in reversed(previous):
                self._write_slot(owner, namespace, values or ())
            logger.error(
                "Commit failed, restored %d slots: %s", len(previous), exc,
            )
            raise HostTransactionFailure(f"Commit failed: {exc}") from exc
