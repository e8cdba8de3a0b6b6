"""Typed records kept in drawing attributes: components, parts, glass, work point, elevations."""

from takeoff_bridge.records.parts import (
    ChildPart,
    PartAttachment,
    default_parts,
    read_parts,
    write_parts,
)
from takeoff_bridge.records.component import (
    COMPONENT_NAMESPACE,
    Component,
    ComponentInfo,
    components_with_attachments,
    create_metal_component,
    erase_metal_component,
    find_metal_components,
    get_all_components,
    join_attachments,
    read_component_info,
    write_component_info,
)
from takeoff_bridge.records.glass import (
    GLASS_NAMESPACE,
    GlassAttributes,
    find_glass_panels,
    read_glass,
    write_glass,
)
from takeoff_bridge.records.workpoint import (
    WORKPOINT_KEY,
    WorkPoint,
    add_work_point_marker,
    copy_work_point,
    get_work_point,
    store_work_point,
)
from takeoff_bridge.records.elevations import (
    ELEVATIONS_KEY,
    ElevationDefinition,
    ElevationInstance,
    load_elevation_definitions,
    save_elevation_definitions,
)
from takeoff_bridge.records.attachments import (
    ATTACHMENTS_KEY,
    Attachment,
    load_attachments,
    save_attachments,
)

__all__ = [
    "ChildPart",
    "PartAttachment",
    "default_parts",
    "read_parts",
    "write_parts",
    "COMPONENT_NAMESPACE",
    "Component",
    "ComponentInfo",
    "components_with_attachments",
    "create_metal_component",
    "erase_metal_component",
    "find_metal_components",
    "get_all_components",
    "join_attachments",
    "read_component_info",
    "write_component_info",
    "GLASS_NAMESPACE",
    "GlassAttributes",
    "find_glass_panels",
    "read_glass",
    "write_glass",
    "WORKPOINT_KEY",
    "WorkPoint",
    "add_work_point_marker",
    "copy_work_point",
    "get_work_point",
    "store_work_point",
    "ELEVATIONS_KEY",
    "ElevationDefinition",
    "ElevationInstance",
    "load_elevation_definitions",
    "save_elevation_definitions",
    "ATTACHMENTS_KEY",
    "Attachment",
    "load_attachments",
    "save_attachments",
]
