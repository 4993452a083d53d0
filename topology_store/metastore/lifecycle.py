from __future__ import annotations

import logging

from ..exceptions import AlreadyProtectedError, CoordinationError, NotProtectedError
from ..models import Topom
from ..paths import TopologyPaths, cluster_prefix

_LOGGER = logging.getLogger(__name__)


class MetadataStoreLifecycleMixin:
    """
    Leadership acquisition, release and terminal shutdown.

    States are ``fresh -> protected -> fresh`` through acquire/release, and
    ``close`` moves either of them to the absorbing closed state.
    """

    def acquire(self, name: str, topom: Topom) -> None:
        """
        Become the exclusive owner of cluster ``name``.

        The leadership node is created with ``topom``'s encoding. The
        coordination service's atomic create decides the winner; when another
        owner already holds the node its ``NodeExistsError`` propagates and the
        store stays unprotected.

        Raises
        ------
        StoreClosedError
            If the store has been closed.
        AlreadyProtectedError
            If this store already holds the leadership node.
        CoordinationError
            If the create fails for any reason.
        """
        with self._lock:
            self._ensure_open()
            if self._protected:
                self._inc_stat("guard_rejections")
                raise AlreadyProtectedError("Acquire again.")

            self._prefix = cluster_prefix(name, self.config.root_namespace)
            self._paths = TopologyPaths(self._prefix)
            lock_path = self._paths.lock_path()
            try:
                with self._tracked():
                    self._client.create(lock_path, topom.encode())
            except CoordinationError as exc:
                self._inc_stat("acquire_failures")
                _LOGGER.info("Topology protection not acquired path=%s error=%s", lock_path, exc)
                raise
            self._protected = True
            self._inc_stat("acquire_success")
            _LOGGER.info("Acquired topology protection path=%s token=%s", lock_path, topom.token)

    def release(self) -> None:
        """
        Step down by deleting the leadership node.

        The store stays usable and can ``acquire`` again. When the delete
        fails the store keeps its protection and the error propagates.
        """
        with self._lock:
            self._ensure_open()
            if not self._protected:
                self._inc_stat("guard_rejections")
                raise NotProtectedError("Release again.")

            lock_path = self._paths.lock_path()
            try:
                with self._tracked():
                    self._client.delete(lock_path)
            except CoordinationError:
                self._inc_stat("release_failures")
                raise
            self._protected = False
            self._inc_stat("release_success")
            _LOGGER.info("Released topology protection path=%s", lock_path)

    def close(self) -> None:
        """
        Shut the store down for good. Calling it again is a no-op.

        A still-held leadership node is deleted first (best effort) unless
        ``config.release_on_close`` is false; a failed delete is logged and
        does not stop the shutdown.
        """
        with self._lock:
            if self._closed:
                return
            if self._protected and self.config.release_on_close:
                lock_path = self._paths.lock_path()
                try:
                    with self._tracked():
                        self._client.delete(lock_path)
                except CoordinationError as exc:
                    self._inc_stat("release_failures")
                    _LOGGER.warning("Best-effort release failed during close path=%s error=%s", lock_path, exc)
                else:
                    self._inc_stat("release_success")
                    _LOGGER.info("Released topology protection on close path=%s", lock_path)
            elif self._protected:
                _LOGGER.warning("Closing with leadership node still held path=%s", self._paths.lock_path())
            self._protected = False
            self._closed = True

            try:
                self._client.close()
            except CoordinationError as exc:
                _LOGGER.warning("Coordination client close failed error=%s", exc)
            _LOGGER.info("Metadata store closed prefix=%s", self._prefix)

    @property
    def is_protected(self) -> bool:
        """Return whether this store currently holds the leadership node."""
        with self._lock:
            return self._protected

    @property
    def is_closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def prefix(self) -> str:
        """Cluster subtree root; empty until the first ``acquire``."""
        with self._lock:
            return self._prefix

    @property
    def paths(self) -> TopologyPaths:
        with self._lock:
            return self._paths
