"""
Metal part lists: the chunked record attached to a metal component.

Parts are stored as a JSON list of objects with PascalCase keys, the shape
the fabrication tools exchange:

    [{"Name": "Horizontal Body", "PartType": "HB", "StartAdjustment": 0.0,
      "EndAdjustment": 0.0, ..., "Attachments": []}, ...]
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from takeoff_bridge.errors import CorruptPayload
from takeoff_bridge.host.record_store import UnitOfWork
from takeoff_bridge.xdata.entity_store import (
    PARTS_LAYOUT,
    ChunkLayout,
    EntityAttributeStore,
    WriteResult,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


def pascal_case(name: str) -> str:
    """'attached_part_number' -> 'AttachedPartNumber'"""
    return ''.join(part.capitalize() for part in name.split('_'))


def to_pascal_dict(obj: Any, skip: Sequence[str] = ()) -> Dict[str, Any]:
    return {
        pascal_case(f.name): getattr(obj, f.name)
        for f in fields(obj)
        if f.name not in skip
    }


def from_pascal_dict(cls: Type[T], data: Dict[str, Any], skip: Sequence[str] = ()) -> T:
    """Build a dataclass from PascalCase keys.

    Unknown keys are ignored; missing or null keys keep the field default.
    """
    if not isinstance(data, dict):
        raise CorruptPayload(f"Expected an object for {cls.__name__}, got {type(data).__name__}")
    kwargs = {}
    for f in fields(cls):
        if f.name in skip:
            continue
        value = data.get(pascal_case(f.name))
        if value is not None:
            kwargs[f.name] = value
    return cls(**kwargs)


@dataclass
class PartAttachment:
    """Where another component's part attaches to this part."""
    side: str = ""
    position: float = 0.0
    height: float = 0.0
    invert: bool = False
    adjust: float = 0.0
    attached_part_number: str = ""
    attached_part_type: str = ""
    attached_fab: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return to_pascal_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PartAttachment':
        return from_pascal_dict(cls, data)


@dataclass
class ChildPart:
    """One fabricated part cut from a metal component."""
    name: str = ""
    part_type: str = ""
    length_adjustment: float = 0.0
    is_shop_use: bool = False
    start_adjustment: float = 0.0  # left (horizontal) or bottom (vertical)
    end_adjustment: float = 0.0    # right (horizontal) or top (vertical)
    is_fixed_length: bool = False
    fixed_length: float = 0.0
    mark_number: str = ""
    material: str = ""
    attach: str = ""  # "L", "R" or ""
    invert: bool = False
    adjust: float = 0.0
    clips: bool = False
    finish: str = "Paint"
    fab: str = "1"
    attachments: List[PartAttachment] = field(default_factory=list)

    def actual_length(self, parent_length: float) -> float:
        """Cut length for a component of `parent_length`."""
        if self.is_fixed_length:
            return self.fixed_length
        return parent_length + self.start_adjustment + self.end_adjustment

    def to_dict(self) -> Dict[str, Any]:
        data = to_pascal_dict(self, skip=('attachments',))
        data['Attachments'] = [a.to_dict() for a in self.attachments]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChildPart':
        part = from_pascal_dict(cls, data, skip=('attachments',))
        part.attachments = [
            PartAttachment.from_dict(a) for a in (data.get('Attachments') or [])
        ]
        return part


def _part(name: str, part_type: str, start: float = 0.0, end: float = 0.0, **extra: Any) -> ChildPart:
    return ChildPart(
        name=name, part_type=part_type,
        start_adjustment=start, end_adjustment=end,
        length_adjustment=start + end, material="Aluminum", **extra,
    )


def default_parts(component_type: str) -> List[ChildPart]:
    """Starting part list for a new component of the given type."""
    kind = component_type.upper()
    if kind == "HORIZONTAL":
        return [
            _part("Horizontal Body", "HB"),
            _part("Flat Filler", "FF", start=-0.03125),
            _part("Face Cap", "FC"),
            _part("Shear Block Left", "SBL", start=-1.25, attach="L"),
            _part("Shear Block Right", "SBR", end=-1.25, attach="R"),
        ]
    if kind == "VERTICAL":
        return [
            _part("Vertical Body", "VB", clips=True),
            _part("Pressure Plate", "PP", start=-0.0625),
            _part("Snap Cover", "SC", end=-0.125),
        ]
    return []


def parts_from_record(record: Any) -> List[ChildPart]:
    if record is None:
        return []
    if not isinstance(record, list):
        raise CorruptPayload(f"Part list must be a JSON array, got {type(record).__name__}")
    return [ChildPart.from_dict(item) for item in record]


def read_parts(
    store: EntityAttributeStore,
    entity: Any,
    layout: ChunkLayout = PARTS_LAYOUT,
    uow: Optional[UnitOfWork] = None,
) -> List[ChildPart]:
    """Part list of a component; empty when none is stored.

    Raises:
        CorruptPayload: chunk missing, bad JSON, or not a list of objects
    """
    return parts_from_record(store.read(entity, layout.base, uow))


def write_parts(
    store: EntityAttributeStore,
    entity: Any,
    parts: Sequence[ChildPart],
    layout: ChunkLayout = PARTS_LAYOUT,
    uow: Optional[UnitOfWork] = None,
) -> WriteResult:
    result = store.write(entity, layout.base, [p.to_dict() for p in parts], uow)
    logger.debug("Stored %d parts", len(parts), extra={"chunks": result.chunk_count})
    return result
