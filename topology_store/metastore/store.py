"""
Lock-gated metadata store for cluster topology.

This module provides the concrete ``MetadataStore`` class while delegating
behavior to focused mixins.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from ..config import StoreConfig
from ..coordination_protocol import CoordinationClient
from ..paths import TopologyPaths
from .diagnostics import MetadataStoreDiagnosticsMixin
from .helpers import MetadataStoreHelperMixin
from .lifecycle import MetadataStoreLifecycleMixin
from .topology import MetadataStoreTopologyMixin

_LOGGER = logging.getLogger(__name__)


class MetadataStore(
    MetadataStoreLifecycleMixin,
    MetadataStoreTopologyMixin,
    MetadataStoreDiagnosticsMixin,
    MetadataStoreHelperMixin,
):
    """
    Synchronous facade over one coordination client handle.

    The store exclusively owns its client. Topology reads and writes are
    refused unless :meth:`acquire` succeeded, and one re-entrant lock
    serializes every public method so concurrent callers in one process never
    interleave mid-operation. Exclusivity across processes comes only from the
    coordination service's atomic create of the leadership node.

    Parameters
    ----------
    client:
        Coordination client implementing
        :class:`topology_store.coordination_protocol.CoordinationClient`.
    config:
        Store configuration; defaults apply when omitted.
    """

    @classmethod
    def from_backend(
        cls,
        config: StoreConfig | None = None,
        *,
        backend: str = "memory",
        **backend_options: Any,
    ) -> "MetadataStore":
        """
        Build a store with a named coordination backend.

        ``store = MetadataStore.from_backend(config, backend="redis", redis_url="...")``
        """
        from ..backends import create_client

        config = config or StoreConfig()
        client = create_client(backend=backend, store_config=config, **backend_options)
        return cls(client, config=config)

    def __init__(self, client: CoordinationClient, *, config: StoreConfig | None = None) -> None:
        self.config = config or StoreConfig()
        self._client = client
        self._client.set_logger(_LOGGER.info)

        self._prefix = ""
        self._paths = TopologyPaths("")
        self._protected = False
        self._closed = False
        self._lock = threading.RLock()

        self._stats_lock = threading.Lock()
        self._stats: dict[str, int] = {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(prefix={self._prefix!r}, "
            f"protected={self._protected}, closed={self._closed})"
        )
