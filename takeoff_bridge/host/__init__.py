"""Host record stores: abstract interface, in-memory host, ezdxf host."""

from takeoff_bridge.host.record_store import (
    DOCUMENT,
    REAL,
    TEXT,
    XDATA_INT16,
    XDATA_INT32,
    XDATA_REAL,
    XDATA_STRING,
    RecordStore,
    TypedValue,
    UnitOfWork,
)
from takeoff_bridge.host.memory_store import MemoryEntity, MemoryRecordStore
from takeoff_bridge.host.dxf_store import DxfRecordStore

__all__ = [
    "DOCUMENT",
    "REAL",
    "TEXT",
    "XDATA_INT16",
    "XDATA_INT32",
    "XDATA_REAL",
    "XDATA_STRING",
    "RecordStore",
    "TypedValue",
    "UnitOfWork",
    "MemoryEntity",
    "MemoryRecordStore",
    "DxfRecordStore",
]
