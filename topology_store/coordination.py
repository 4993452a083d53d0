"""
Thread-safe in-memory coordination service.

:class:`InMemoryCoordinationService` holds one hierarchical node tree that any
number of :class:`InMemoryCoordinationClient` handles share, the same way
several processes share one coordination ensemble. Every tree operation runs
under a single lock, so creates are linearizable and two clients racing for
the same path observe exactly one winner.
"""

from __future__ import annotations

import logging
import posixpath
from threading import RLock

from .coordination_protocol import LoggerFunc
from .exceptions import CoordinationError, NodeExistsError, NodeNotEmptyError, NoNodeError

_LOGGER = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """
    Validate an absolute node path and return it without a trailing slash.

    Raises
    ------
    CoordinationError
        If the path is relative or contains empty/relative segments.
    """
    if not path.startswith("/"):
        raise CoordinationError(f"Node path must be absolute: {path!r}")
    if path == "/":
        return path
    trimmed = path.rstrip("/")
    segments = trimmed.split("/")[1:]
    if any(segment in {"", ".", ".."} for segment in segments):
        raise CoordinationError(f"Invalid node path: {path!r}")
    return trimmed


class _Node:
    __slots__ = ("data", "children")

    def __init__(self, data: bytes = b"") -> None:
        self.data = data
        self.children: set[str] = set()


class InMemoryCoordinationService:
    """
    Shared node tree standing in for a coordination service ensemble.

    Notes
    -----
    * Parent directories are created implicitly, with empty data, on create.
    * Stored bytes are immutable, so reads hand them out without copying.
    """

    def __init__(self) -> None:
        """Create a tree holding only the root node."""
        self._nodes: dict[str, _Node] = {"/": _Node()}
        self._lock = RLock()

    def create(self, path: str, data: bytes) -> None:
        path = normalize_path(path)
        with self._lock:
            if path in self._nodes:
                raise NodeExistsError(f"Node already exists: {path}")
            self._ensure_parents(path)
            self._nodes[path] = _Node(bytes(data))
            self._attach(path)

    def update(self, path: str, data: bytes) -> None:
        path = normalize_path(path)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                raise NoNodeError(f"Node does not exist: {path}")
            node.data = bytes(data)

    def delete(self, path: str) -> None:
        path = normalize_path(path)
        if path == "/":
            raise CoordinationError("Root node cannot be deleted.")
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                raise NoNodeError(f"Node does not exist: {path}")
            if node.children:
                raise NodeNotEmptyError(f"Node has children: {path}")
            del self._nodes[path]
            parent, name = posixpath.split(path)
            self._nodes[parent].children.discard(name)

    def load_data(self, path: str) -> bytes | None:
        path = normalize_path(path)
        with self._lock:
            node = self._nodes.get(path)
            return None if node is None else node.data

    def list_children(self, path: str) -> list[str]:
        path = normalize_path(path)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                return []
            return [posixpath.join(path, name) for name in sorted(node.children)]

    def exists(self, path: str) -> bool:
        """Return ``True`` when ``path`` is present in the tree."""
        path = normalize_path(path)
        with self._lock:
            return path in self._nodes

    def _ensure_parents(self, path: str) -> None:
        """Create missing ancestors of ``path`` (caller must hold the lock)."""
        parent = posixpath.dirname(path)
        missing = []
        while parent not in self._nodes:
            missing.append(parent)
            parent = posixpath.dirname(parent)
        for directory in reversed(missing):
            self._nodes[directory] = _Node()
            self._attach(directory)

    def _attach(self, path: str) -> None:
        parent, name = posixpath.split(path)
        self._nodes[parent].children.add(name)


class InMemoryCoordinationClient:
    """
    One client handle onto an :class:`InMemoryCoordinationService`.

    Parameters
    ----------
    service:
        Shared tree to operate on. A private tree is created when omitted.
    """

    def __init__(self, service: InMemoryCoordinationService | None = None) -> None:
        self.service = service or InMemoryCoordinationService()
        self._logger: LoggerFunc = _LOGGER.debug
        self._closed = False
        self._lock = RLock()

    def set_logger(self, logger: LoggerFunc) -> None:
        self._logger = logger

    def create(self, path: str, data: bytes) -> None:
        self._ensure_open()
        self.service.create(path, data)
        self._logger("coordination create path=%s bytes=%d", path, len(data))

    def update(self, path: str, data: bytes) -> None:
        self._ensure_open()
        self.service.update(path, data)
        self._logger("coordination update path=%s bytes=%d", path, len(data))

    def delete(self, path: str) -> None:
        self._ensure_open()
        self.service.delete(path)
        self._logger("coordination delete path=%s", path)

    def load_data(self, path: str) -> bytes | None:
        self._ensure_open()
        return self.service.load_data(path)

    def list_children(self, path: str) -> list[str]:
        self._ensure_open()
        return self.service.list_children(path)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._logger("coordination client closed")

    @property
    def is_closed(self) -> bool:
        with self._lock:
            return self._closed

    def _ensure_open(self) -> None:
        with self._lock:
            if self._closed:
                raise CoordinationError("Use of closed coordination client.")
