"""
Batch reconciliation of chunked entity records.

Re-chunks every entity that carries a record kind's marker slot, for
example after the chunk size changes, without data loss and without
leaving orphan chunk slots behind.

Provides:
- One unit of work per entity: a failure on one entity keeps the work
  already committed for the others
- Per-entity state tracking and a summary report
- Folder mode over DXF drawings

Usage:
    from takeoff_bridge.batch import reconcile_document
    from takeoff_bridge.host import DxfRecordStore
    from takeoff_bridge.xdata import ChunkCodec, PARTS_LAYOUT

    store = DxfRecordStore.open("takeoff.dxf")
    report = reconcile_document(store, PARTS_LAYOUT, ChunkCodec(chunk_size=200))
    print(report.summary())
    store.save("takeoff.dxf")
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from takeoff_bridge.errors import ChunkCeilingExceeded, CorruptPayload
from takeoff_bridge.host.dxf_store import DxfRecordStore
from takeoff_bridge.host.record_store import RecordStore
from takeoff_bridge.logging_config import LogContext, log_timing, timed
from takeoff_bridge.xdata.codec import ChunkCodec, join, parse
from takeoff_bridge.xdata.entity_store import (
    PARTS_LAYOUT,
    ChunkLayout,
    EntityAttributeStore,
)

logger = logging.getLogger(__name__)


class EntityState(Enum):
    """Per-entity progress through a reconciliation pass."""
    UNVISITED = "unvisited"
    READ = "read"
    DECODED = "decoded"
    REWRITTEN = "rewritten"
    RECONCILED = "reconciled"
    DECODE_FAILED = "decode_failed"
    SKIPPED = "skipped"


_TRANSITIONS = {
    EntityState.UNVISITED: {EntityState.READ},
    EntityState.READ: {EntityState.DECODED, EntityState.DECODE_FAILED},
    EntityState.DECODED: {EntityState.REWRITTEN, EntityState.SKIPPED},
    EntityState.REWRITTEN: {EntityState.RECONCILED},
    EntityState.DECODE_FAILED: {EntityState.SKIPPED},
    EntityState.RECONCILED: set(),
    EntityState.SKIPPED: set(),
}


@dataclass
class EntityResult:
    """Result of reconciling a single entity."""
    handle: str
    state: EntityState = EntityState.UNVISITED
    chunks_before: Optional[int] = None
    chunks_after: Optional[int] = None
    reclaimed: List[int] = field(default_factory=list)
    error: Optional[str] = None
    duration_seconds: float = 0.0

    def advance(self, state: EntityState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal transition {self.state.value} -> {state.value} for {self.handle}"
            )
        self.state = state

    def skip(self, exc: Exception) -> None:
        if self.state is EntityState.READ:
            self.advance(EntityState.DECODE_FAILED)
        self.advance(EntityState.SKIPPED)
        self.error = str(exc)

    @property
    def success(self) -> bool:
        return self.state is EntityState.RECONCILED

    @property
    def status(self) -> str:
        """Get status string."""
        return "OK" if self.success else "SKIPPED"


@dataclass
class ReconcileReport:
    """Result of a reconciliation pass over one drawing."""
    base: str = ""
    results: List[EntityResult] = field(default_factory=list)
    total_duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        """Total number of entities visited."""
        return len(self.results)

    @property
    def reconciled(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def skipped_results(self) -> List[EntityResult]:
        return [r for r in self.results if not r.success]

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total == 0:
            return 0.0
        return 100.0 * self.reconciled / self.total

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            f"Reconciliation Summary ({self.base})",
            "=" * 40,
            f"Total entities:  {self.total}",
            f"Reconciled:      {self.reconciled}",
            f"Skipped:         {self.skipped}",
            f"Success rate:    {self.success_rate:.1f}%",
            f"Total time:      {self.total_duration_seconds:.2f}s",
            "",
        ]

        if self.skipped > 0:
            lines.append("Skipped entities:")
            for r in self.skipped_results:
                lines.append(f"  - {r.handle}: {r.error}")

        return "\n".join(lines)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'base': self.base,
            'total': self.total,
            'reconciled': self.reconciled,
            'skipped': self.skipped,
            'success_rate': self.success_rate,
            'total_duration_seconds': self.total_duration_seconds,
            'results': [
                {
                    'handle': r.handle,
                    'state': r.state.value,
                    'chunks_before': r.chunks_before,
                    'chunks_after': r.chunks_after,
                    'reclaimed': r.reclaimed,
                    'error': r.error,
                    'duration': r.duration_seconds,
                }
                for r in self.results
            ],
        }


def reconcile_entity(
    entity_store: EntityAttributeStore,
    entity: Any,
    layout: ChunkLayout,
) -> EntityResult:
    """Re-chunk one entity's record in its own unit of work.

    CorruptPayload and ChunkCeilingExceeded mark the entity as skipped and
    leave it untouched. HostTransactionFailure propagates.
    """
    start_time = time.perf_counter()
    store = entity_store.store
    result = EntityResult(handle=str(store.owner_key(entity)))

    with store.transaction() as uow:
        result.advance(EntityState.READ)
        try:
            chunks = entity_store.read_chunks(uow, entity, layout.base)
            text = join(chunks) if chunks else None
            if text is not None:
                parse(text)
        except CorruptPayload as exc:
            uow.abort()
            result.skip(exc)
            result.duration_seconds = time.perf_counter() - start_time
            return result
        result.advance(EntityState.DECODED)
        result.chunks_before = None if chunks is None else len(chunks)

        try:
            if chunks is None:
                # no record: only stray chunk slots can need clearing
                reclaimed = entity_store.reclaim_orphans(uow, entity, layout.base, 0)
                result.chunks_after = 0
                result.reclaimed = reclaimed
            else:
                written = entity_store.write_text(entity, layout.base, text or "", uow)
                result.chunks_after = written.chunk_count
                result.reclaimed = written.reclaimed
        except ChunkCeilingExceeded as exc:
            uow.abort()
            result.skip(exc)
            result.duration_seconds = time.perf_counter() - start_time
            return result
        result.advance(EntityState.REWRITTEN)

    result.advance(EntityState.RECONCILED)
    result.duration_seconds = time.perf_counter() - start_time
    return result


def reconcile_document(
    store: RecordStore,
    layout: ChunkLayout = PARTS_LAYOUT,
    codec: Optional[ChunkCodec] = None,
    dxftype: Optional[str] = None,
    progress_callback: Optional[Callable[[int, int, EntityResult], None]] = None,
) -> ReconcileReport:
    """Re-chunk every entity carrying the layout's marker slot.

    Args:
        store: Host record store
        layout: Namespaces of the record kind
        codec: Target chunk size and ceiling
        dxftype: Restrict to one entity type (e.g. 'LWPOLYLINE')
        progress_callback: Called after each entity: (current, total, result)

    Returns:
        ReconcileReport with per-entity outcomes

    Raises:
        HostTransactionFailure: a unit of work could not commit; entities
            processed before it keep their reconciled state
    """
    start_time = time.perf_counter()
    codec = codec or ChunkCodec()
    entity_store = EntityAttributeStore(store, codec)
    report = ReconcileReport(base=layout.base)

    with log_timing(logger, f"Reconcile {layout.base}", level=logging.INFO,
                    chunk_size=codec.chunk_size, ceiling=codec.ceiling):
        extra = [layout.marker] if layout.marker else []
        entity_store.registry.ensure_chunk_set(layout.base, codec.ceiling, extra=extra)

        entities = store.entities_with_slot(layout.marker_namespace, dxftype)
        logger.info("Found %d entities with %s", len(entities), layout.marker_namespace)

        for i, entity in enumerate(entities, 1):
            result = reconcile_entity(entity_store, entity, layout)
            report.results.append(result)

            if progress_callback:
                progress_callback(i, len(entities), result)

            if result.success:
                logger.debug(
                    "[%d/%d] %s: %s chunks -> %d",
                    i, len(entities), result.handle,
                    result.chunks_before, result.chunks_after,
                )
            else:
                logger.warning(
                    "[%d/%d] %s: skipped (%s)",
                    i, len(entities), result.handle, result.error,
                    extra={"handle": result.handle},
                )

    report.total_duration_seconds = time.perf_counter() - start_time
    logger.info(
        "Reconciliation complete: %d/%d reconciled, %d skipped",
        report.reconciled, report.total, report.skipped,
    )
    return report


def find_drawings(
    input_dir: Union[str, Path],
    pattern: str = "*.dxf",
    recursive: bool = False,
) -> List[Path]:
    """Find DXF drawings in a directory.

    Raises:
        FileNotFoundError: if the directory does not exist
        NotADirectoryError: if the path is a file
    """
    input_dir = Path(input_dir)

    if not input_dir.exists():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    if not input_dir.is_dir():
        raise NotADirectoryError(f"Not a directory: {input_dir}")

    patterns = {pattern, pattern.replace('.dxf', '.DXF')}
    files = set()
    for p in patterns:
        files.update(input_dir.rglob(p) if recursive else input_dir.glob(p))

    files = sorted(files)
    logger.info("Found %d DXF files in %s", len(files), input_dir)
    return files


@timed(level=logging.INFO)
def reconcile_drawing(
    path: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    layout: ChunkLayout = PARTS_LAYOUT,
    codec: Optional[ChunkCodec] = None,
    dxftype: Optional[str] = None,
) -> ReconcileReport:
    """Open a drawing, reconcile it, and save (in place unless output_path)."""
    store = DxfRecordStore.open(path)
    report = reconcile_document(store, layout, codec, dxftype)
    store.save(output_path or path)
    return report


def reconcile_folder(
    input_dir: Union[str, Path],
    pattern: str = "*.dxf",
    recursive: bool = False,
    layout: ChunkLayout = PARTS_LAYOUT,
    codec: Optional[ChunkCodec] = None,
    dxftype: Optional[str] = None,
) -> Dict[Path, ReconcileReport]:
    """Reconcile every drawing in a folder in place."""
    reports: Dict[Path, ReconcileReport] = {}
    drawings = find_drawings(input_dir, pattern, recursive)
    for i, path in enumerate(drawings, 1):
        with LogContext(drawing=path.name):
            report = reconcile_drawing(path, layout=layout, codec=codec, dxftype=dxftype)
        reports[path] = report
        logger.info(
            "[%d/%d] %s: %d reconciled, %d skipped",
            i, len(drawings), path.name, report.reconciled, report.skipped,
        )
    return reports
