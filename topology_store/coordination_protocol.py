"""
Coordination client protocol used by :class:`topology_store.metastore.MetadataStore`.

The store depends on this narrow method surface rather than on a specific
coordination service library, so an in-memory service, Redis or any other
hierarchical store with atomic create-if-absent can back it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

LoggerFunc = Callable[..., Any]
"""Logging callable invoked as ``fn(fmt, *args)`` with ``%``-style formatting."""


class CoordinationClient(Protocol):
    """
    Behavioral contract for coordination service handles.

    Implementations must make ``create`` an atomic create-if-absent: two
    clients racing to create one path must see exactly one success. All
    failures are raised as :class:`topology_store.exceptions.CoordinationError`
    subclasses.
    """

    def create(self, path: str, data: bytes) -> None:
        """Create ``path`` with ``data``; raise ``NodeExistsError`` if present."""

    def update(self, path: str, data: bytes) -> None:
        """Replace data of ``path``; raise ``NoNodeError`` if absent."""

    def delete(self, path: str) -> None:
        """Remove ``path``; raise ``NoNodeError`` if absent."""

    def load_data(self, path: str) -> bytes | None:
        """Return node data, or ``None`` when the node is absent."""

    def list_children(self, path: str) -> list[str]:
        """Return absolute child paths sorted by name; ``[]`` if absent."""

    def close(self) -> None:
        """Release the handle. Safe to call more than once."""

    def set_logger(self, logger: LoggerFunc) -> None:
        """Route the client's diagnostic messages to ``logger``."""
