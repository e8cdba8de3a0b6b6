"""
DXF host record store built on ezdxf.

Mapping onto the DXF object model:
- namespace table   -> APPID table (doc.appids)
- entity slot       -> XDATA block of the entity under the APPID
- document slot     -> XRECORD in the root named-object dictionary;
                       keys like "WORKPOINTS/PRIMARY" walk nested dictionaries

Usage:
    from takeoff_bridge.host.dxf_store import DxfRecordStore

    store = DxfRecordStore.open("takeoff.dxf")
    for pline in store.entities_with_slot("METALCOMP", "LWPOLYLINE"):
        ...
    store.save("takeoff.dxf")
"""

import logging
from pathlib import Path
from typing import Any, Hashable, Iterator, List, Optional, Tuple, Union

import ezdxf
from ezdxf.document import Drawing

from takeoff_bridge.host.record_store import (
    DOCUMENT_KEY,
    XDATA_APPID,
    DocumentOwner,
    RecordStore,
    Slot,
    TypedValue,
    normalize_namespace,
)

logger = logging.getLogger(__name__)


class DxfRecordStore(RecordStore):
    """Record store over an ezdxf Drawing."""

    def __init__(self, doc: Drawing):
        self.doc = doc

    @classmethod
    def new(cls, dxf_version: str = 'R2010') -> 'DxfRecordStore':
        """Create a store over a new, empty drawing.

        Args:
            dxf_version: DXF version (R2000, R2004, R2007, R2010, R2013, R2018)
        """
        return cls(ezdxf.new(dxf_version))

    @classmethod
    def open(cls, path: Union[str, Path]) -> 'DxfRecordStore':
        """Load a DXF drawing.

        Raises:
            FileNotFoundError: if the file does not exist
            ezdxf.DXFStructureError: if the file is not a valid DXF
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Drawing not found: {path}")
        doc = ezdxf.readfile(str(path))
        logger.info("DXF loaded: %s (%s)", path, doc.dxfversion)
        return cls(doc)

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        self.doc.saveas(str(path))
        logger.info("DXF saved: %s", path)

    def entity(self, handle: str) -> Optional[Any]:
        """Look up a live entity by handle."""
        entity = self.doc.entitydb.get(handle.upper())
        if entity is None or not entity.is_alive:
            return None
        return entity

    # -- host primitives -------------------------------------------------

    def owner_key(self, owner: Any) -> Hashable:
        if isinstance(owner, DocumentOwner):
            return DOCUMENT_KEY
        return owner.dxf.handle

    def entities(self, dxftype: Optional[str] = None) -> Iterator[Any]:
        yield from self.doc.modelspace().query(dxftype or '*')

    def polyline_vertices(self, entity: Any) -> Optional[List[Tuple[float, float, float]]]:
        if entity.dxftype() != "LWPOLYLINE":
            return None
        return [v.xyz for v in entity.vertices_in_wcs()]

    def _has_namespace(self, name: str) -> bool:
        return self.doc.appids.has_entry(name)

    def _add_namespace(self, name: str) -> None:
        if not self.doc.appids.has_entry(name):
            self.doc.appids.new(normalize_namespace(name))
            logger.debug("Registered APPID %s", name)

    def _read_slot(self, owner: Any, namespace: str) -> Optional[Slot]:
        if isinstance(owner, DocumentOwner):
            xrecord = self._find_xrecord(namespace)
            if xrecord is None:
                return None
            values = tuple(TypedValue(tag.code, tag.value) for tag in xrecord.tags)
            return values or None

        appid = normalize_namespace(namespace)
        if not owner.has_xdata(appid):
            return None
        values = tuple(
            TypedValue(tag.code, tag.value)
            for tag in owner.get_xdata(appid)
            if tag.code != XDATA_APPID
        )
        return values or None

    def _write_slot(self, owner: Any, namespace: str, values: Slot) -> None:
        if isinstance(owner, DocumentOwner):
            if not values and self._find_xrecord(namespace) is None:
                return
            xrecord = self._find_xrecord(namespace, create=True)
            xrecord.reset([(v.code, v.value) for v in values])
            return

        appid = normalize_namespace(namespace)
        if values:
            owner.set_xdata(appid, [(v.code, v.value) for v in values])
        else:
            owner.discard_xdata(appid)

    def _find_xrecord(self, key: str, create: bool = False) -> Optional[Any]:
        *dict_names, leaf = normalize_namespace(key).split('/')
        dictionary = self.doc.rootdict
        for name in dict_names:
            if create:
                dictionary = dictionary.get_required_dict(name)
                continue
            dictionary = dictionary.get(name)
            if dictionary is None or dictionary.dxftype() != 'DICTIONARY':
                return None

        xrecord = dictionary.get(leaf)
        if xrecord is None:
            return dictionary.add_xrecord(leaf) if create else None
        if xrecord.dxftype() != 'XRECORD':
            if create:
                raise ValueError(f"Dictionary entry {key!r} is not an XRECORD")
            return None
        return xrecord
