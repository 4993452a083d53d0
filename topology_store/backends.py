"""
Backend factory helpers for coordination client switching.

This module gives applications a uniform way to pick a coordination backend
by name without rewriting store bootstrap logic.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from .config import StoreConfig
from .coordination import InMemoryCoordinationClient
from .coordination_protocol import CoordinationClient
from .exceptions import BackendConfigurationError, BackendNotAvailableError

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from .metastore import MetadataStore


class CoordinationBackend(str, Enum):
    """
    Built-in backend names supported by the factory helpers.

    MEMORY
        In-process coordination service; share one service between stores to
        emulate several processes.
    REDIS
        Redis-backed coordination provided by the ``topology_store_redis``
        plugin package.
    """

    MEMORY = "memory"
    REDIS = "redis"


def _normalize_backend(backend: str | CoordinationBackend) -> CoordinationBackend:
    if isinstance(backend, CoordinationBackend):
        return backend
    lowered = str(backend).strip().lower()
    try:
        return CoordinationBackend(lowered)
    except ValueError as exc:
        valid = ", ".join(item.value for item in CoordinationBackend)
        raise BackendConfigurationError(
            f"Unknown backend {backend!r}. Supported values: {valid}."
        ) from exc


def available_backends() -> tuple[str, ...]:
    """
    Return backend names available in the current environment.

    The Redis backend appears only when its plugin package imports cleanly.
    """
    backends = [CoordinationBackend.MEMORY.value]
    try:
        __import__("topology_store_redis")
    except Exception:  # noqa: BLE001 - optional dependency probing
        pass
    else:
        backends.append(CoordinationBackend.REDIS.value)
    return tuple(backends)


def create_client(
    backend: str | CoordinationBackend = CoordinationBackend.MEMORY,
    *,
    store_config: StoreConfig | None = None,
    **backend_options: Any,
) -> CoordinationClient:
    """
    Create a coordination client from a short backend name.

    Parameters
    ----------
    backend:
        Backend selector string (``"memory"`` or ``"redis"``).
    store_config:
        Store configuration supplying coordinator addresses and the session
        timeout to backends that use them.
    backend_options:
        Backend-specific options.

        Memory options:
            ``service`` (shared :class:`InMemoryCoordinationService`).
        Redis options:
            ``redis_url`` (str), ``key_prefix`` (str), ``redis_client``
            and optional plugin-native ``config`` object.
    """
    selected = _normalize_backend(backend)
    store_config = store_config or StoreConfig()
    if selected is CoordinationBackend.MEMORY:
        service = backend_options.pop("service", None)
        if backend_options:
            unknown = ", ".join(sorted(str(key) for key in backend_options))
            raise BackendConfigurationError(
                f"Memory backend does not accept options: {unknown}."
            )
        return InMemoryCoordinationClient(service)
    if selected is CoordinationBackend.REDIS:
        try:
            from topology_store_redis import RedisClientConfig, RedisCoordinationClient
        except Exception as exc:  # noqa: BLE001 - optional dependency may be absent
            raise BackendNotAvailableError(
                "Redis backend requires the 'topology_store_redis' package and 'redis'."
            ) from exc

        config = backend_options.pop("config", None)
        redis_client = backend_options.pop("redis_client", None)
        if config is None:
            redis_url = backend_options.pop("redis_url", None)
            if redis_url is None:
                redis_url = _redis_url_from_addresses(store_config)
            key_prefix = str(backend_options.pop("key_prefix", "topology-store"))
            config = RedisClientConfig(
                redis_url=str(redis_url),
                key_prefix=key_prefix,
                socket_timeout_seconds=store_config.session_timeout_seconds,
            )
        if backend_options:
            unknown = ", ".join(sorted(str(key) for key in backend_options))
            raise BackendConfigurationError(
                f"Unknown Redis backend options: {unknown}."
            )
        return RedisCoordinationClient(config=config, redis_client=redis_client)
    raise BackendConfigurationError(f"Unhandled backend: {selected!r}")


def _redis_url_from_addresses(store_config: StoreConfig) -> str:
    """Derive a Redis URL from the single configured coordinator address."""
    addresses = store_config.addresses
    if not addresses:
        return "redis://127.0.0.1:6379/0"
    if len(addresses) > 1:
        raise BackendConfigurationError(
            "Redis backend accepts exactly one coordinator address; "
            f"got {', '.join(str(item) for item in addresses)}."
        )
    return f"redis://{addresses[0].host}:{addresses[0].port}/0"


def new_store(
    addresses: list[str] | None = None,
    *,
    backend: str | CoordinationBackend = CoordinationBackend.MEMORY,
    config: StoreConfig | None = None,
    **backend_options: Any,
) -> "MetadataStore":
    """
    Build a :class:`MetadataStore` connected to ``addresses`` in one step.

    ``store = new_store(["127.0.0.1:6379"], backend="redis")``

    ``addresses`` is ignored when an explicit ``config`` is supplied.
    """
    from .metastore import MetadataStore

    if config is None:
        config = StoreConfig.from_addresses(addresses)
    client = create_client(backend, store_config=config, **backend_options)
    return MetadataStore(client, config=config)
