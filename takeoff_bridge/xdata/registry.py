"""
Namespace (APPID) registry.

A namespace must exist in the document's APPID table before slots under it
are written. Registration is idempotent and never undone here; only slot
contents are cleared.
"""

import logging
import re
from typing import Iterable, List, Optional

from takeoff_bridge.errors import NamespaceNotRegistered
from takeoff_bridge.host.record_store import RecordStore, UnitOfWork

logger = logging.getLogger(__name__)

_NAMESPACE_RE = re.compile(r'^[A-Za-z0-9_$\-]{1,31}$')

INFO_SUFFIX = "INFO"


def validate_namespace(name: str) -> str:
    """Return `name` if it is a legal APPID name, else raise ValueError."""
    if not isinstance(name, str) or not _NAMESPACE_RE.match(name):
        raise ValueError(f"Invalid namespace name: {name!r}")
    return name


def info_namespace(base: str) -> str:
    return f"{base}{INFO_SUFFIX}"


def chunk_namespace(base: str, index: int) -> str:
    return f"{base}{index}"


def chunk_set_namespaces(base: str, ceiling: int) -> List[str]:
    """Base, info and every chunk namespace below the ceiling."""
    return [base, info_namespace(base)] + [
        chunk_namespace(base, i) for i in range(ceiling)
    ]


class NamespaceRegistry:
    """Ensures namespaces exist in a host's namespace table."""

    def __init__(self, store: RecordStore):
        self.store = store

    def exists(self, name: str, uow: Optional[UnitOfWork] = None) -> bool:
        if uow is not None:
            return uow.namespace_exists(name)
        return self.store.namespace_exists(name)

    def ensure(self, name: str, uow: Optional[UnitOfWork] = None) -> None:
        """Register `name` if absent; no-op otherwise."""
        self.ensure_all([name], uow)

    def ensure_all(
        self,
        names: Iterable[str],
        uow: Optional[UnitOfWork] = None,
    ) -> int:
        """Register every absent name in one unit of work.

        Returns:
            Number of names that were newly registered
        """
        names = [validate_namespace(n) for n in names]
        added = 0
        with self.store.scoped(uow) as scope:
            for name in names:
                if not scope.namespace_exists(name):
                    scope.register_namespace(name)
                    added += 1
        if added:
            logger.debug("Registered %d namespaces", added, extra={"names": names})
        return added

    def ensure_chunk_set(
        self,
        base: str,
        ceiling: int,
        uow: Optional[UnitOfWork] = None,
        extra: Iterable[str] = (),
    ) -> int:
        """Register base, info, all chunk namespaces and any `extra` names."""
        return self.ensure_all(list(extra) + chunk_set_namespaces(base, ceiling), uow)

    def require(self, name: str, uow: Optional[UnitOfWork] = None) -> str:
        """Return `name` if registered.

        Raises:
            NamespaceNotRegistered: if the namespace table lacks `name`
        """
        if not self.exists(name, uow):
            raise NamespaceNotRegistered(name)
        return name
