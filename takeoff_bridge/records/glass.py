"""
Glass panel attributes stored positionally in a GLASS slot:

    glass type, floor, elevation            (strings)
    bite left, bite bottom, bite right, bite top,
    width, height, DLO width, DLO height    (reals)
    mark number                             (string)
"""

import logging
from dataclasses import astuple, dataclass, fields
from typing import Any, List, Optional, Tuple

from takeoff_bridge.errors import CorruptPayload
from takeoff_bridge.host.record_store import (
    XDATA_REAL,
    XDATA_STRING,
    RecordStore,
    Slot,
    TypedValue,
    UnitOfWork,
)
from takeoff_bridge.xdata.registry import NamespaceRegistry

logger = logging.getLogger(__name__)

GLASS_NAMESPACE = "GLASS"


@dataclass
class GlassAttributes:
    glass_type: str = ""
    floor: str = ""
    elevation: str = ""
    bite_left: float = 0.0
    bite_bottom: float = 0.0
    bite_right: float = 0.0
    bite_top: float = 0.0
    width: float = 0.0
    height: float = 0.0
    dlo_width: float = 0.0
    dlo_height: float = 0.0
    mark_number: str = ""

    def to_values(self) -> List[TypedValue]:
        values = []
        for f, value in zip(fields(self), astuple(self)):
            if f.type in (float, 'float'):
                values.append(TypedValue(XDATA_REAL, float(value)))
            else:
                values.append(TypedValue(XDATA_STRING, str(value)))
        return values

    @classmethod
    def from_values(cls, values: Slot) -> 'GlassAttributes':
        """Positional read; missing trailing values keep their defaults.

        Raises:
            CorruptPayload: a dimension is not numeric
        """
        kwargs = {}
        for f, value in zip(fields(cls), values):
            if f.type in (float, 'float'):
                try:
                    kwargs[f.name] = float(value.value)
                except (TypeError, ValueError) as exc:
                    raise CorruptPayload(
                        f"GLASS value {f.name} is not numeric: {value.value!r}"
                    ) from exc
            else:
                kwargs[f.name] = str(value.value)
        return cls(**kwargs)


def read_glass(
    store: RecordStore,
    entity: Any,
    uow: Optional[UnitOfWork] = None,
) -> Optional[GlassAttributes]:
    with store.scoped(uow) as scope:
        values = scope.get_slot(entity, GLASS_NAMESPACE)
    return None if values is None else GlassAttributes.from_values(values)


def write_glass(
    store: RecordStore,
    entity: Any,
    attributes: GlassAttributes,
    uow: Optional[UnitOfWork] = None,
    registry: Optional[NamespaceRegistry] = None,
) -> None:
    registry = registry or NamespaceRegistry(store)
    with store.scoped(uow) as scope:
        registry.ensure(GLASS_NAMESPACE, scope)
        scope.set_slot(entity, GLASS_NAMESPACE, attributes.to_values())


def find_glass_panels(
    store: RecordStore,
    dxftype: Optional[str] = "LWPOLYLINE",
) -> List[Tuple[Any, GlassAttributes]]:
    """All glass panels with readable attributes.

    Panels whose attributes do not parse are logged and left out.
    """
    panels = []
    for entity in store.entities_with_slot(GLASS_NAMESPACE, dxftype):
        try:
            panels.append((entity, read_glass(store, entity)))
        except CorruptPayload as exc:
            logger.warning(
                "Skipping glass panel: %s", exc,
                extra={"handle": store.owner_key(entity)},
            )
    logger.debug("Found %d glass panels", len(panels))
    return panels
