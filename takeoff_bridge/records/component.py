"""
Metal component marker, component lifecycle and the component aggregate.

A metal component is a polyline carrying a METALCOMP slot with three
strings (component type, floor, elevation) and a chunked part list. Its
length is the distance between the first two polyline vertices.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ezdxf.math import Vec3

from takeoff_bridge.host.record_store import (
    STRING_CODES,
    XDATA_STRING,
    RecordStore,
    Slot,
    TypedValue,
    UnitOfWork,
)
from takeoff_bridge.records.attachments import Attachment, load_attachments
from takeoff_bridge.records.parts import (
    ChildPart,
    PartAttachment,
    default_parts,
    read_parts,
    write_parts,
)
from takeoff_bridge.xdata.document_store import DocumentAttributeStore
from takeoff_bridge.xdata.entity_store import (
    PARTS_LAYOUT,
    ChunkLayout,
    EntityAttributeStore,
    WriteResult,
)
from takeoff_bridge.xdata.registry import NamespaceRegistry

logger = logging.getLogger(__name__)

COMPONENT_NAMESPACE = "METALCOMP"


@dataclass
class ComponentInfo:
    component_type: str = ""
    floor: str = ""
    elevation: str = ""

    def to_values(self) -> List[TypedValue]:
        return [
            TypedValue(XDATA_STRING, self.component_type),
            TypedValue(XDATA_STRING, self.floor),
            TypedValue(XDATA_STRING, self.elevation),
        ]

    @classmethod
    def from_values(cls, values: Slot) -> 'ComponentInfo':
        """Positional read; missing trailing strings stay empty."""
        strings = [str(v.value) for v in values if v.code in STRING_CODES]
        strings += [""] * (3 - len(strings))
        return cls(*strings[:3])


def read_component_info(
    store: RecordStore,
    entity: Any,
    namespace: str = COMPONENT_NAMESPACE,
    uow: Optional[UnitOfWork] = None,
) -> Optional[ComponentInfo]:
    with store.scoped(uow) as scope:
        values = scope.get_slot(entity, namespace)
    return None if values is None else ComponentInfo.from_values(values)


def write_component_info(
    store: RecordStore,
    entity: Any,
    info: ComponentInfo,
    namespace: str = COMPONENT_NAMESPACE,
    uow: Optional[UnitOfWork] = None,
    registry: Optional[NamespaceRegistry] = None,
) -> None:
    registry = registry or NamespaceRegistry(store)
    with store.scoped(uow) as scope:
        registry.ensure(namespace, scope)
        scope.set_slot(entity, namespace, info.to_values())


def find_metal_components(
    store: RecordStore,
    dxftype: Optional[str] = None,
    namespace: str = COMPONENT_NAMESPACE,
) -> List[Any]:
    return store.entities_with_slot(namespace, dxftype)


def create_metal_component(
    entity_store: EntityAttributeStore,
    entity: Any,
    info: ComponentInfo,
    parts: Optional[Sequence[ChildPart]] = None,
    layout: ChunkLayout = PARTS_LAYOUT,
) -> WriteResult:
    """Mark `entity` as a metal component and store its parts atomically.

    Args:
        entity_store: Store used for the part list
        entity: Host entity (normally a polyline)
        info: Component type, floor and elevation
        parts: Part list; defaults to the standard parts for the type
        layout: Marker and part-list namespaces

    Returns:
        WriteResult of the part list

    Raises:
        ChunkCeilingExceeded: part list too large; entity left unmarked
    """
    if parts is None:
        parts = default_parts(info.component_type)
    store = entity_store.store
    with store.transaction() as uow:
        write_component_info(
            store, entity, info, layout.marker_namespace, uow, entity_store.registry,
        )
        result = write_parts(entity_store, entity, parts, layout, uow)
    logger.info(
        "Created %s component", info.component_type or "untyped",
        extra={"handle": store.owner_key(entity), "parts": len(parts)},
    )
    return result


def erase_metal_component(
    entity_store: EntityAttributeStore,
    entity: Any,
    layout: ChunkLayout = PARTS_LAYOUT,
) -> List[int]:
    """Clear the marker and the part list; namespaces stay registered.

    Returns:
        Chunk indices that were cleared
    """
    store = entity_store.store
    with store.transaction() as uow:
        if uow.get_slot(entity, layout.marker_namespace) is not None:
            uow.set_slot(entity, layout.marker_namespace, ())
        cleared = entity_store.clear(entity, layout.base, uow)
    logger.debug("Erased component data", extra={"handle": store.owner_key(entity)})
    return cleared


# ---------------------------------------------------------------------------
# Component aggregate
# ---------------------------------------------------------------------------

@dataclass
class Component:
    """A metal component with its geometry and part list."""
    handle: str
    component_type: str = ""
    floor: str = ""
    elevation: str = ""
    start_point: Optional[Vec3] = None
    end_point: Optional[Vec3] = None
    length: float = 0.0
    parts: List[ChildPart] = field(default_factory=list)

    @property
    def is_vertical(self) -> bool:
        return self.component_type.upper() == "VERTICAL"

    def part(self, part_type: str) -> Optional[ChildPart]:
        """First part of the given type, if any."""
        return next((p for p in self.parts if p.part_type == part_type), None)

    def cut_lengths(self) -> List[float]:
        return [p.actual_length(self.length) for p in self.parts]

    def to_dict(self) -> Dict[str, Any]:
        parts = []
        for part, cut in zip(self.parts, self.cut_lengths()):
            data = part.to_dict()
            data["ActualLength"] = cut
            parts.append(data)
        return {
            "Handle": self.handle,
            "Type": self.component_type,
            "Floor": self.floor,
            "Elevation": self.elevation,
            "StartPoint": list(self.start_point.xyz) if self.start_point is not None else None,
            "EndPoint": list(self.end_point.xyz) if self.end_point is not None else None,
            "Length": self.length,
            "Parts": parts,
        }


def get_all_components(
    entity_store: EntityAttributeStore,
    dxftype: Optional[str] = "LWPOLYLINE",
    layout: ChunkLayout = PARTS_LAYOUT,
    uow: Optional[UnitOfWork] = None,
) -> List[Component]:
    """Collect every marked polyline with its geometry and parts.

    Start and end points are the first two vertices; components with fewer
    vertices keep no points and a zero length. Marked entities that are not
    lightweight polylines are left out.

    Raises:
        CorruptPayload: a component's part list cannot be read
    """
    store = entity_store.store
    components = []
    with store.scoped(uow) as scope:
        for entity in find_metal_components(store, dxftype, layout.marker_namespace):
            vertices = store.polyline_vertices(entity)
            if vertices is None:
                continue
            info = read_component_info(store, entity, layout.marker_namespace, scope)
            component = Component(
                handle=str(store.owner_key(entity)),
                component_type=info.component_type,
                floor=info.floor,
                elevation=info.elevation,
            )
            if len(vertices) >= 2:
                component.start_point = Vec3(vertices[0])
                component.end_point = Vec3(vertices[1])
                component.length = component.start_point.distance(component.end_point)
            component.parts = read_parts(entity_store, entity, layout, scope)
            components.append(component)
    logger.debug("Collected %d components", len(components))
    return components


def join_attachments(
    components: Sequence[Component],
    attachments: Sequence[Attachment],
) -> List[Component]:
    """Add each attachment to the matching part of its vertical component.

    An attachment is recorded on the first vertical part of type
    `vertical_part_type`, describing the first horizontal part of type
    `horizontal_part_type`. Attachments whose vertical or horizontal side
    (component or part) cannot be found are ignored.
    """
    by_handle = {c.handle.upper(): c for c in components}
    by_vertical: Dict[str, List[Attachment]] = {}
    for attachment in attachments:
        by_vertical.setdefault(attachment.vertical_handle.upper(), []).append(attachment)

    for component in components:
        if not component.is_vertical:
            continue
        for attachment in by_vertical.get(component.handle.upper(), []):
            vertical_part = component.part(attachment.vertical_part_type)
            horizontal = by_handle.get(attachment.horizontal_handle.upper())
            if vertical_part is None or horizontal is None:
                logger.debug(
                    "Ignoring attachment",
                    extra={"vertical": attachment.vertical_handle,
                           "horizontal": attachment.horizontal_handle},
                )
                continue
            horizontal_part = horizontal.part(attachment.horizontal_part_type)
            if horizontal_part is None:
                continue
            vertical_part.attachments.append(PartAttachment(
                side=attachment.side,
                position=attachment.position,
                height=attachment.height,
                invert=attachment.invert,
                adjust=attachment.adjust,
                attached_part_number=horizontal_part.name,
                attached_part_type=horizontal_part.part_type,
                attached_fab=horizontal_part.fab,
            ))
    return list(components)


def components_with_attachments(
    entity_store: EntityAttributeStore,
    dxftype: Optional[str] = "LWPOLYLINE",
    layout: ChunkLayout = PARTS_LAYOUT,
) -> List[Component]:
    """All components, with METALATTACHMENTS joined into the vertical parts."""
    store = entity_store.store
    with store.transaction() as uow:
        components = get_all_components(entity_store, dxftype, layout, uow)
    attachments = load_attachments(DocumentAttributeStore(store))
    return join_attachments(components, attachments)
