"""
Redis-backed coordination client implementation.

The client implements the core ``CoordinationClient`` protocol and can be
injected into :class:`topology_store.metastore.MetadataStore`.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Any

from redis import Redis
from redis.exceptions import RedisError
from topology_store.coordination import normalize_path
from topology_store.coordination_protocol import LoggerFunc
from topology_store.exceptions import (
    CoordinationError,
    NodeExistsError,
    NodeNotEmptyError,
    NoNodeError,
)

_LOGGER = logging.getLogger(__name__)

_CREATE_LUA = """
if redis.call('EXISTS', KEYS[1]) == 1 then
  return 0
end
local levels = (#KEYS - 1) / 2
for i = 1, levels do
  redis.call('SETNX', KEYS[2 * i], '')
  redis.call('SADD', KEYS[2 * i + 1], ARGV[i + 1])
end
redis.call('SET', KEYS[1], ARGV[1])
return 1
"""

_DELETE_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then
  return 0
end
if redis.call('SCARD', KEYS[2]) > 0 then
  return -1
end
redis.call('DEL', KEYS[1])
redis.call('SREM', KEYS[3], ARGV[1])
return 1
"""


@dataclass(slots=True)
class RedisClientConfig:
    """
    Configuration for :class:`RedisCoordinationClient`.

    Parameters
    ----------
    redis_url:
        Redis connection URL used when a client is not directly supplied.
    key_prefix:
        Prefix for all redis keys created by this client.
    socket_timeout_seconds:
        Socket timeout for connections opened from ``redis_url``.
    """

    redis_url: str = "redis://127.0.0.1:6379/0"
    key_prefix: str = "topology-store"
    socket_timeout_seconds: float = 60.0


class RedisCoordinationClient:
    """
    Coordination client storing the node tree in one Redis database.

    Data model
    ----------
    * node data is stored in string keys ``<prefix>:node:<path>``
    * children of a node are the members of set ``<prefix>:children:<path>``
    * ancestors are created implicitly with empty data on ``create``

    Notes
    -----
    ``create`` and ``delete`` run as Lua scripts, so the existence check, the
    write and the ancestor index update are atomic on the server. All keys of
    one tree must live on one Redis node (no Redis Cluster slot spreading).
    """

    def __init__(
        self,
        *,
        config: RedisClientConfig | None = None,
        redis_client: Redis | None = None,
    ) -> None:
        self.config = config or RedisClientConfig()
        self._owns_connection = redis_client is None
        self._redis = redis_client or Redis.from_url(
            self.config.redis_url,
            socket_timeout=self.config.socket_timeout_seconds,
        )
        self._create_script = self._redis.register_script(_CREATE_LUA)
        self._delete_script = self._redis.register_script(_DELETE_LUA)
        self._logger: LoggerFunc = _LOGGER.debug
        self._closed = False
        self._lock = RLock()

    # ------------------------------------------------------------------ #
    # Key helpers
    # ------------------------------------------------------------------ #

    def _key_node(self, path: str) -> str:
        return f"{self.config.key_prefix}:node:{path}"

    def _key_children(self, path: str) -> str:
        return f"{self.config.key_prefix}:children:{path}"

    def _decode_text(self, value: bytes | str) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def _encode_bytes(self, value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    @contextmanager
    def _translate_errors(self, operation: str, path: str) -> Iterator[None]:
        with self._lock:
            if self._closed:
                raise CoordinationError("Use of closed coordination client.")
        try:
            yield
        except RedisError as exc:
            raise CoordinationError(f"Redis {operation} failed path={path}: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Coordination API
    # ------------------------------------------------------------------ #

    def set_logger(self, logger: LoggerFunc) -> None:
        self._logger = logger

    def create(self, path: str, data: bytes) -> None:
        path = normalize_path(path)
        if path == "/":
            raise NodeExistsError("Node already exists: /")
        keys = [self._key_node(path)]
        args: list[Any] = [data]
        child = path
        while child != "/":
            parent, name = posixpath.split(child)
            keys.extend([self._key_node(parent), self._key_children(parent)])
            args.append(name)
            child = parent
        with self._translate_errors("create", path):
            created = int(self._create_script(keys=keys, args=args))
        if created == 0:
            raise NodeExistsError(f"Node already exists: {path}")
        self._logger("coordination create path=%s bytes=%d", path, len(data))

    def update(self, path: str, data: bytes) -> None:
        path = normalize_path(path)
        with self._translate_errors("update", path):
            updated = self._redis.set(self._key_node(path), data, xx=True)
        if not updated:
            raise NoNodeError(f"Node does not exist: {path}")
        self._logger("coordination update path=%s bytes=%d", path, len(data))

    def delete(self, path: str) -> None:
        path = normalize_path(path)
        if path == "/":
            raise CoordinationError("Root node cannot be deleted.")
        parent, name = posixpath.split(path)
        with self._translate_errors("delete", path):
            result = int(
                self._delete_script(
                    keys=[
                        self._key_node(path),
                        self._key_children(path),
                        self._key_children(parent),
                    ],
                    args=[name],
                )
            )
        if result == 0:
            raise NoNodeError(f"Node does not exist: {path}")
        if result < 0:
            raise NodeNotEmptyError(f"Node has children: {path}")
        self._logger("coordination delete path=%s", path)

    def load_data(self, path: str) -> bytes | None:
        path = normalize_path(path)
        with self._translate_errors("load", path):
            value = self._redis.get(self._key_node(path))
        if value is None:
            return None
        return self._encode_bytes(value)

    def list_children(self, path: str) -> list[str]:
        path = normalize_path(path)
        with self._translate_errors("list", path):
            raw = self._redis.smembers(self._key_children(path))
        names = sorted(self._decode_text(item) for item in raw)
        return [posixpath.join(path, name) for name in names]

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self._owns_connection:
            try:
                self._redis.close()
            except RedisError as exc:
                raise CoordinationError(f"Redis close failed: {exc}") from exc
        self._logger("coordination client closed")
