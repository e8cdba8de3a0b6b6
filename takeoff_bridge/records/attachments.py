"""
Component-to-component attachments, stored as JSON in the
METALATTACHMENTS document record.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from takeoff_bridge.errors import CorruptPayload
from takeoff_bridge.records.parts import from_pascal_dict, to_pascal_dict
from takeoff_bridge.xdata.document_store import DocumentAttributeStore

logger = logging.getLogger(__name__)

ATTACHMENTS_KEY = "METALATTACHMENTS"


@dataclass
class Attachment:
    """A horizontal component attached to a vertical one."""
    horizontal_handle: str = ""
    vertical_handle: str = ""
    horizontal_part_type: str = ""
    vertical_part_type: str = ""
    side: str = ""
    position: float = 0.0
    height: float = 0.0
    invert: bool = False
    adjust: float = 0.0

    def involves(self, handle: str) -> bool:
        handle = handle.upper()
        return handle in (self.horizontal_handle.upper(), self.vertical_handle.upper())

    def to_dict(self) -> Dict[str, Any]:
        return to_pascal_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Attachment':
        return from_pascal_dict(cls, data)


def load_attachments(store: DocumentAttributeStore) -> List[Attachment]:
    """Stored attachments; empty when the drawing has none.

    Raises:
        CorruptPayload: record is not a JSON list of objects
    """
    record = store.read_json(ATTACHMENTS_KEY)
    if record is None:
        return []
    if not isinstance(record, list):
        raise CorruptPayload(f"{ATTACHMENTS_KEY} must hold a JSON array")
    return [Attachment.from_dict(a) for a in record]


def save_attachments(store: DocumentAttributeStore, attachments: Sequence[Attachment]) -> None:
    store.write_json(ATTACHMENTS_KEY, [a.to_dict() for a in attachments])
    logger.debug("Saved %d attachments", len(attachments))
