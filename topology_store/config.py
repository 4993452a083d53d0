"""
Configuration models for the topology metadata store.

This module centralizes the settings that shape how a store talks to its
coordination service and where it keeps cluster topology:

* coordination service endpoints
* root namespace of the persisted path layout
* session timeout inherited by the coordination client
* shutdown behavior for a still-held leadership node
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_ROOT_NAMESPACE = "/zk/codis2"


@dataclass(frozen=True, slots=True)
class CoordinatorAddress:
    """
    Network endpoint of one coordination service member.

    Parameters
    ----------
    host:
        DNS name or IP address of the coordination service member.
    port:
        TCP port the member listens on.
    """

    host: str
    port: int

    def __post_init__(self) -> None:
        """Validate the host/port pair at construction time."""
        if not self.host:
            raise ValueError("CoordinatorAddress.host must be a non-empty string.")
        if not (1 <= int(self.port) <= 65535):
            raise ValueError("CoordinatorAddress.port must be in range 1..65535.")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    def as_dict(self) -> dict[str, object]:
        """Convert the address into a JSON-friendly dictionary."""
        return {"host": self.host, "port": self.port}

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "CoordinatorAddress":
        """Create an address from a mapping with ``host`` and ``port`` keys."""
        return cls(host=str(payload["host"]), port=int(payload["port"]))

    @classmethod
    def parse(cls, raw: str) -> "CoordinatorAddress":
        """
        Parse a ``host:port`` string.

        Raises
        ------
        ValueError
            If the string has no port separator or the port is not numeric.
        """
        item = raw.strip()
        if ":" not in item:
            raise ValueError(f"Invalid coordinator address {raw!r}; expected host:port.")
        host, raw_port = item.rsplit(":", 1)
        return cls(host=host.strip(), port=int(raw_port))


@dataclass(slots=True)
class StoreConfig:
    """
    Top-level configuration used by :class:`MetadataStore`.

    Parameters
    ----------
    addresses:
        Coordination service members. The in-memory backend ignores them.
    root_namespace:
        Absolute path under which every cluster gets its own subtree
        (``<root_namespace>/<cluster name>``). Changing it breaks
        compatibility with tools reading the default layout.
    session_timeout_seconds:
        Session/socket timeout handed to the coordination client.
    release_on_close:
        When true, ``close`` deletes a still-held leadership node before the
        client handle is dropped. When false the node is left for the
        coordination service (or an operator) to clean up.
    """

    addresses: list[CoordinatorAddress] = field(default_factory=list)
    root_namespace: str = DEFAULT_ROOT_NAMESPACE
    session_timeout_seconds: float = 60.0
    release_on_close: bool = True

    def __post_init__(self) -> None:
        """Validate values that affect the persisted layout."""
        if not self.root_namespace.startswith("/"):
            raise ValueError("StoreConfig.root_namespace must be an absolute path.")
        if self.root_namespace != "/" and self.root_namespace.endswith("/"):
            raise ValueError("StoreConfig.root_namespace must not end with '/'.")
        if self.session_timeout_seconds <= 0:
            raise ValueError("StoreConfig.session_timeout_seconds must be > 0.")

    @classmethod
    def from_addresses(cls, addresses: list[str] | None, **kwargs: object) -> "StoreConfig":
        """
        Build a config from ``host:port`` strings.

        Blank entries are skipped and duplicates collapse to the first
        occurrence so the order of the remaining members is preserved.
        """
        unique: list[CoordinatorAddress] = []
        seen = set()
        for raw in addresses or []:
            if not raw.strip():
                continue
            address = CoordinatorAddress.parse(raw)
            if address in seen:
                continue
            seen.add(address)
            unique.append(address)
        return cls(addresses=unique, **kwargs)  # type: ignore[arg-type]
