"""
Redis coordination plugin for topology_store.

This package is kept separate from the core library so the in-memory backend
works without a Redis server:

    from topology_store import StoreConfig, Topom
    from topology_store_redis import RedisMetadataStore

    store = RedisMetadataStore(
        StoreConfig(),
        redis_url="redis://127.0.0.1:6379/0",
        key_prefix="codis",
    )
    store.acquire("demo", Topom(token="t-1"))

Redis stands in for the hierarchical coordination service: node data and
directory membership live in plain keys/sets, and atomic creates are Lua
scripts, so two stores pointed at one Redis database compete for the same
leadership node.

The core backend factory works too:

    from topology_store import new_store
    store = new_store(["127.0.0.1:6379"], backend="redis")
"""

from .client import RedisClientConfig, RedisCoordinationClient
from .store import RedisMetadataStore

__all__ = ["RedisClientConfig", "RedisCoordinationClient", "RedisMetadataStore"]
