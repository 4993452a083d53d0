from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TypeVar

from ..exceptions import CoordinationError, NotProtectedError, StoreClosedError
from ..models import TopologyEntity

_LOGGER = logging.getLogger(__name__)

_EntityT = TypeVar("_EntityT", bound=TopologyEntity)


class MetadataStoreHelperMixin:
    """
    Guard clauses and low-level read helpers shared across mixins.

    Every helper here expects the caller to hold ``self._lock``.
    """

    def _ensure_open(self) -> None:
        if self._closed:
            self._inc_stat("guard_rejections")
            raise StoreClosedError("Use of closed metadata store.")

    def _ensure_protected(self) -> None:
        """
        Reject the call unless this store currently holds the leadership node.

        A successful pass is counted as one protected operation.
        """
        self._ensure_open()
        if not self._protected:
            self._inc_stat("guard_rejections")
            _LOGGER.debug("Rejected topology operation without protection prefix=%s", self._prefix)
            raise NotProtectedError("Operation without lock protection.")
        self._inc_stat("protected_operations")

    @contextmanager
    def _tracked(self) -> Iterator[None]:
        """Count coordination failures raised inside the block and re-raise them."""
        try:
            yield
        except CoordinationError:
            self._inc_stat("coordination_failures")
            raise

    def _load_entity(self, path: str, entity_cls: type[_EntityT]) -> _EntityT | None:
        with self._tracked():
            data = self._client.load_data(path)
            if data is None:
                return None
            return entity_cls.decode(data)

    def _list_entities(self, base: str, entity_cls: type[_EntityT]) -> list[_EntityT]:
        """
        Load and decode every child of ``base``.

        The first read or decode failure aborts the whole listing; a child
        removed between listing and reading counts as a failure too.
        """
        entities: list[_EntityT] = []
        with self._tracked():
            for path in self._client.list_children(base):
                data = self._client.load_data(path)
                if data is None:
                    raise CoordinationError(f"Node vanished while listing: {path}")
                entities.append(entity_cls.decode(data))
        return entities

    def _inc_stat(self, key: str, *, delta: int = 1) -> None:
        with self._stats_lock:
            self._stats[key] = self._stats.get(key, 0) + delta
