"""
Work point: the drawing's reference origin for fabrication coordinates.

Stored as three reals in the WORKPOINTS/PRIMARY document record, and
optionally shown as a small crosshair on a non-plotting layer.
"""

import logging
from typing import NamedTuple, Optional, Sequence

from ezdxf.document import Drawing

from takeoff_bridge.xdata.document_store import (
    DocumentAttributeStore,
    copy_document_record,
)

logger = logging.getLogger(__name__)

WORKPOINT_KEY = "WORKPOINTS/PRIMARY"
WORKPOINT_LAYER = "WORKPOINTS"
MARKER_SIZE = 0.25


class WorkPoint(NamedTuple):
    x: float
    y: float
    z: float = 0.0


def store_work_point(store: DocumentAttributeStore, point: Sequence[float]) -> WorkPoint:
    work_point = WorkPoint(*(float(c) for c in point))
    store.write_point(WORKPOINT_KEY, work_point)
    logger.info("Work point set to (%.4f, %.4f, %.4f)", *work_point)
    return work_point


def get_work_point(store: DocumentAttributeStore) -> Optional[WorkPoint]:
    """Stored work point, or None if the drawing has none.

    Raises:
        CorruptPayload: the record is not three reals
    """
    point = store.read_point(WORKPOINT_KEY)
    return None if point is None else WorkPoint(*point)


def copy_work_point(source: DocumentAttributeStore, target: DocumentAttributeStore) -> bool:
    """Copy the work point into another drawing.

    Not atomic across drawings: re-read the target to confirm.

    Returns:
        False if the source has no work point
    """
    return copy_document_record(source, target, WORKPOINT_KEY)


def ensure_work_point_layer(doc: Drawing) -> None:
    """Red, non-plotting WORKPOINTS layer."""
    if doc.layers.has_entry(WORKPOINT_LAYER):
        return
    layer = doc.layers.add(WORKPOINT_LAYER, color=1)
    layer.dxf.plot = 0


def add_work_point_marker(doc: Drawing, point: Sequence[float], size: float = MARKER_SIZE) -> None:
    """Draw a three-axis crosshair at `point` in model space."""
    ensure_work_point_layer(doc)
    msp = doc.modelspace()
    x, y, z = WorkPoint(*point)
    attribs = {'layer': WORKPOINT_LAYER}

    msp.add_line((x - size, y, z), (x + size, y, z), dxfattribs=attribs)
    msp.add_line((x, y - size, z), (x, y + size, z), dxfattribs=attribs)
    msp.add_line((x, y, z - size), (x, y, z + size), dxfattribs=attribs)
