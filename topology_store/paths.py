"""
Path namespace of a cluster's topology inside the coordination service.

The layout under ``<root>/<cluster>`` is a compatibility contract with any
other reader of the same tree::

    topom                  leader descriptor (lock node)
    slots/slot-NNNN        slot mapping
    proxy/proxy-NNNN       proxy descriptor
    group/group-NNNN       group descriptor

Ids render as 4-digit zero-padded decimals for all three kinds.
"""

from __future__ import annotations

import posixpath

from .config import DEFAULT_ROOT_NAMESPACE

LOCK_NODE = "topom"
SLOTS_DIR = "slots"
PROXY_DIR = "proxy"
GROUP_DIR = "group"


def cluster_prefix(name: str, root_namespace: str = DEFAULT_ROOT_NAMESPACE) -> str:
    """
    Return the subtree root for cluster ``name``.

    Raises
    ------
    ValueError
        If the name is empty, is a relative path marker, or contains ``/``.
    """
    if not name or name in {".", ".."} or "/" in name:
        raise ValueError(f"Invalid cluster name {name!r}.")
    return posixpath.join(root_namespace, name)


def _format_id(kind: str, entity_id: int) -> str:
    if isinstance(entity_id, bool) or not isinstance(entity_id, int):
        raise ValueError(f"{kind} id must be an integer, got {entity_id!r}.")
    if entity_id < 0:
        raise ValueError(f"{kind} id must be >= 0, got {entity_id}.")
    return f"{kind}-{entity_id:04d}"


class TopologyPaths:
    """Build absolute node paths below one cluster prefix."""

    __slots__ = ("prefix",)

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def lock_path(self) -> str:
        return posixpath.join(self.prefix, LOCK_NODE)

    def slot_path(self, slot_id: int) -> str:
        return posixpath.join(self.prefix, SLOTS_DIR, _format_id("slot", slot_id))

    def proxy_base(self) -> str:
        return posixpath.join(self.prefix, PROXY_DIR)

    def proxy_path(self, proxy_id: int) -> str:
        return posixpath.join(self.proxy_base(), _format_id("proxy", proxy_id))

    def group_base(self) -> str:
        return posixpath.join(self.prefix, GROUP_DIR)

    def group_path(self, group_id: int) -> str:
        return posixpath.join(self.group_base(), _format_id("group", group_id))

    def __repr__(self) -> str:
        return f"TopologyPaths(prefix={self.prefix!r})"
