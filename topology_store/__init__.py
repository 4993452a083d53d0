"""
topology_store
==============

Lock-gated metadata front end for a sharded key/value routing cluster.

The package keeps the authoritative cluster topology inside a hierarchical
coordination service and makes sure only one owner mutates it:

* :class:`topology_store.metastore.MetadataStore` gates every slot, proxy and
  group read/write behind an exclusive leadership node (``topom``)
* leadership is taken with ``acquire`` and given up with ``release`` or
  ``close``; the coordination service's atomic create decides the winner
* the coordination service is an injected
  :class:`topology_store.coordination_protocol.CoordinationClient`

Coordination backends:

* ``memory``: thread-safe in-process service, one shared tree per
  :class:`InMemoryCoordinationService`
* ``redis``: separate plugin package ``topology_store_redis``

Typical usage::

    from topology_store import Topom, Group, new_store

    store = new_store(["127.0.0.1:6379"], backend="redis")
    store.acquire("demo", Topom(token="t-1", admin_addr="10.0.0.5:18080"))

    store.create_group(1, Group(id=1, servers=["10.0.0.7:6379"]))
    mapping = store.load_slot_mapping(7)   # None until assigned

    store.release()
    store.close()
"""

from .backends import CoordinationBackend, available_backends, create_client, new_store
from .config import CoordinatorAddress, StoreConfig
from .coordination import InMemoryCoordinationClient, InMemoryCoordinationService
from .coordination_protocol import CoordinationClient
from .exceptions import (
    AlreadyProtectedError,
    BackendConfigurationError,
    BackendNotAvailableError,
    CoordinationError,
    EntityDecodeError,
    NodeExistsError,
    NodeNotEmptyError,
    NoNodeError,
    NotProtectedError,
    StoreClosedError,
    TopologyStoreError,
)
from .metastore import MetadataStore
from .models import Group, Proxy, SlotAction, SlotMapping, Topom
from .paths import TopologyPaths, cluster_prefix

__all__ = [
    "MetadataStore",
    "CoordinationBackend",
    "available_backends",
    "create_client",
    "new_store",
    "CoordinatorAddress",
    "StoreConfig",
    "CoordinationClient",
    "InMemoryCoordinationClient",
    "InMemoryCoordinationService",
    "Group",
    "Proxy",
    "SlotAction",
    "SlotMapping",
    "Topom",
    "TopologyPaths",
    "cluster_prefix",
    "AlreadyProtectedError",
    "BackendConfigurationError",
    "BackendNotAvailableError",
    "CoordinationError",
    "EntityDecodeError",
    "NodeExistsError",
    "NodeNotEmptyError",
    "NoNodeError",
    "NotProtectedError",
    "StoreClosedError",
    "TopologyStoreError",
]
