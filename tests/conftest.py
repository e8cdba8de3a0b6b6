"""
Pytest configuration and fixtures for takeoff_bridge.

Provides:
- In-memory and ezdxf record stores
- Codec and entity/document store fixtures
- A saved DXF drawing with metal components
"""

import logging
from pathlib import Path
from typing import Any, List

import pytest

from takeoff_bridge.host.dxf_store import DxfRecordStore
from takeoff_bridge.host.memory_store import MemoryRecordStore
from takeoff_bridge.host.record_store import Slot
from takeoff_bridge.xdata.codec import ChunkCodec
from takeoff_bridge.xdata.document_store import DocumentAttributeStore
from takeoff_bridge.xdata.entity_store import EntityAttributeStore


# ============================================================================
# Host fixtures
# ============================================================================

class FailingMemoryStore(MemoryRecordStore):
    """Memory host whose n-th slot write (1-based) raises once armed."""

    def __init__(self):
        super().__init__()
        self.fail_on_write = None
        self._writes = 0

    def arm(self, nth_write: int = 1) -> None:
        self.fail_on_write = nth_write
        self._writes = 0

    def _write_slot(self, owner: Any, namespace: str, values: Slot) -> None:
        if self.fail_on_write is not None:
            self._writes += 1
            if self._writes == self.fail_on_write:
                self.fail_on_write = None
                raise IOError("simulated host failure")
        super()._write_slot(owner, namespace, values)


@pytest.fixture
def memory_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def failing_store() -> FailingMemoryStore:
    return FailingMemoryStore()


@pytest.fixture
def dxf_store() -> DxfRecordStore:
    return DxfRecordStore.new('R2010')


@pytest.fixture(params=["memory", "dxf"])
def any_store(request):
    """Runs a test against both hosts."""
    if request.param == "memory":
        return MemoryRecordStore()
    return DxfRecordStore.new('R2010')


def new_entity(store) -> Any:
    """Add a polyline-like owner to either host."""
    if isinstance(store, MemoryRecordStore):
        return store.add_entity("LWPOLYLINE")
    return store.doc.modelspace().add_lwpolyline([(0, 0), (120, 0)])


# ============================================================================
# Store fixtures
# ============================================================================

@pytest.fixture
def codec() -> ChunkCodec:
    """Small chunks so short records span several slots."""
    return ChunkCodec(chunk_size=10, ceiling=20)


@pytest.fixture
def entity_store(memory_store, codec) -> EntityAttributeStore:
    return EntityAttributeStore(memory_store, codec)


@pytest.fixture
def parts_store(memory_store) -> EntityAttributeStore:
    """Default chunk size: room for full part lists."""
    return EntityAttributeStore(memory_store)


@pytest.fixture
def doc_store(memory_store) -> DocumentAttributeStore:
    return DocumentAttributeStore(memory_store)


# ============================================================================
# Records
# ============================================================================

@pytest.fixture
def parts_record() -> List[dict]:
    return [
        {"Name": "Horizontal Body", "PartType": "HB", "Material": "Aluminum"},
        {"Name": "Face Cap", "PartType": "FC", "Material": "Aluminum"},
    ]


@pytest.fixture
def component_drawing(tmp_path) -> Path:
    """Saved DXF with one horizontal component; its handle is in the 'handle' file."""
    from takeoff_bridge.records.component import ComponentInfo, create_metal_component

    store = DxfRecordStore.new('R2010')
    pline = store.doc.modelspace().add_lwpolyline([(0, 0), (48, 0)])
    create_metal_component(
        EntityAttributeStore(store),
        pline,
        ComponentInfo("Horizontal", "1", "E1"),
    )
    path = tmp_path / "component.dxf"
    store.save(path)
    (tmp_path / "handle").write_text(pline.dxf.handle)
    return path


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handler changes made by setup_logging between tests."""
    logger = logging.getLogger("takeoff_bridge")
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    saved_propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in saved_handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(saved_level)
    logger.propagate = saved_propagate

