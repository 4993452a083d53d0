"""
Redis-backed metadata store convenience wrapper.
"""

from __future__ import annotations

from redis import Redis
from topology_store.config import StoreConfig
from topology_store.metastore import MetadataStore

from .client import RedisClientConfig, RedisCoordinationClient


class RedisMetadataStore(MetadataStore):
    """
    :class:`MetadataStore` variant that keeps the topology tree in Redis.

    Parameters
    ----------
    config:
        Standard core store configuration.
    redis_url:
        Redis URL used when ``redis_client`` is not supplied.
    key_prefix:
        Key prefix namespace for all coordination nodes.
    redis_client:
        Optional preconfigured Redis client instance. The store does not
        close a client it did not create.
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        *,
        redis_url: str = "redis://127.0.0.1:6379/0",
        key_prefix: str = "topology-store",
        redis_client: Redis | None = None,
    ) -> None:
        config = config or StoreConfig()
        self.redis_coordination = RedisCoordinationClient(
            config=RedisClientConfig(
                redis_url=redis_url,
                key_prefix=key_prefix,
                socket_timeout_seconds=config.session_timeout_seconds,
            ),
            redis_client=redis_client,
        )
        super().__init__(self.redis_coordination, config=config)
