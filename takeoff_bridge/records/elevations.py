"""
Elevation definitions: the drawing's list of elevation types and where
they occur, stored as JSON in the ELEVATIONDEFINITIONS document record.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from takeoff_bridge.errors import CorruptPayload
from takeoff_bridge.records.parts import from_pascal_dict, to_pascal_dict
from takeoff_bridge.xdata.document_store import DocumentAttributeStore

logger = logging.getLogger(__name__)

ELEVATIONS_KEY = "ELEVATIONDEFINITIONS"


@dataclass
class ElevationInstance:
    floor: str = ""
    quantity: int = 0
    finish: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return to_pascal_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ElevationInstance':
        return from_pascal_dict(cls, data)


@dataclass
class ElevationDefinition:
    elevation_code: str = ""
    description: str = ""
    instances: List[ElevationInstance] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(i.quantity for i in self.instances)

    def to_dict(self) -> Dict[str, Any]:
        data = to_pascal_dict(self, skip=('instances',))
        data['Instances'] = [i.to_dict() for i in self.instances]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ElevationDefinition':
        definition = from_pascal_dict(cls, data, skip=('instances',))
        definition.instances = [
            ElevationInstance.from_dict(i) for i in (data.get('Instances') or [])
        ]
        return definition


def load_elevation_definitions(store: DocumentAttributeStore) -> List[ElevationDefinition]:
    """Stored definitions; empty when the drawing has none.

    Raises:
        CorruptPayload: record is not a JSON list of objects
    """
    record = store.read_json(ELEVATIONS_KEY)
    if record is None:
        return []
    if not isinstance(record, list):
        raise CorruptPayload(f"{ELEVATIONS_KEY} must hold a JSON array")
    return [ElevationDefinition.from_dict(d) for d in record]


def save_elevation_definitions(
    store: DocumentAttributeStore,
    definitions: Sequence[ElevationDefinition],
) -> None:
    store.write_json(ELEVATIONS_KEY, [d.to_dict() for d in definitions])
    logger.info("Saved %d elevation definitions", len(definitions))
