from __future__ import annotations

import logging
from collections.abc import Iterable

from ..exceptions import NoNodeError
from ..models import Group, Proxy, SlotMapping

_LOGGER = logging.getLogger(__name__)


class MetadataStoreTopologyMixin:
    """
    Protected reads and writes of slot, proxy and group records.

    Each public method holds the store lock for its whole duration, including
    the coordination round trip, and runs only while protection is held.
    """

    # ------------------------------------------------------------------ #
    # Slots
    # ------------------------------------------------------------------ #

    def load_slot_mapping(self, slot_id: int) -> SlotMapping | None:
        """
        Return the mapping stored for ``slot_id``.

        ``None`` means the slot has not been assigned yet; it is not an error.
        """
        with self._lock:
            self._ensure_protected()
            return self._load_entity(self._paths.slot_path(slot_id), SlotMapping)

    def load_slot_mappings(self, slot_ids: Iterable[int]) -> dict[int, SlotMapping | None]:
        """Return mappings for several slots read under one lock hold."""
        with self._lock:
            self._ensure_protected()
            return {
                slot_id: self._load_entity(self._paths.slot_path(slot_id), SlotMapping)
                for slot_id in slot_ids
            }

    def save_slot_mapping(self, slot_id: int, mapping: SlotMapping) -> None:
        """
        Store ``mapping`` for ``slot_id``.

        Slots have no separate create step, so a missing node is created on
        the first save.
        """
        with self._lock:
            self._ensure_protected()
            path = self._paths.slot_path(slot_id)
            data = mapping.encode()
            with self._tracked():
                try:
                    self._client.update(path, data)
                except NoNodeError:
                    _LOGGER.debug("Slot node missing, creating path=%s", path)
                    self._client.create(path, data)

    # ------------------------------------------------------------------ #
    # Proxies
    # ------------------------------------------------------------------ #

    def list_proxy(self) -> list[Proxy]:
        with self._lock:
            self._ensure_protected()
            return self._list_entities(self._paths.proxy_base(), Proxy)

    def create_proxy(self, proxy_id: int, proxy: Proxy) -> None:
        """Register a proxy; ``NodeExistsError`` when the id is taken."""
        with self._lock:
            self._ensure_protected()
            with self._tracked():
                self._client.create(self._paths.proxy_path(proxy_id), proxy.encode())

    def remove_proxy(self, proxy_id: int) -> None:
        with self._lock:
            self._ensure_protected()
            with self._tracked():
                self._client.delete(self._paths.proxy_path(proxy_id))

    # ------------------------------------------------------------------ #
    # Groups
    # ------------------------------------------------------------------ #

    def list_group(self) -> list[Group]:
        with self._lock:
            self._ensure_protected()
            return self._list_entities(self._paths.group_base(), Group)

    def create_group(self, group_id: int, group: Group) -> None:
        with self._lock:
            self._ensure_protected()
            with self._tracked():
                self._client.create(self._paths.group_path(group_id), group.encode())

    def update_group(self, group_id: int, group: Group) -> None:
        """Replace a group record; ``NoNodeError`` when it was never created."""
        with self._lock:
            self._ensure_protected()
            with self._tracked():
                self._client.update(self._paths.group_path(group_id), group.encode())

    def remove_group(self, group_id: int) -> None:
        with self._lock:
            self._ensure_protected()
            with self._tracked():
                self._client.delete(self._paths.group_path(group_id))
