"""
Topology entities persisted by :class:`topology_store.metastore.MetadataStore`.

Each entity owns its byte encoding through ``encode``/``decode``. The store
treats the encoded bytes as opaque: it never looks inside a payload, it only
hands bytes to the coordination client and back.

Payloads are compact, key-sorted UTF-8 JSON objects so that equal entities
always produce identical bytes.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol, TypeVar

from .exceptions import EntityDecodeError

_EntityT = TypeVar("_EntityT", bound="TopologyEntity")


class TopologyEntity(Protocol):
    """Encode/decode contract every stored entity satisfies."""

    def encode(self) -> bytes:
        """Return the opaque byte form stored at the entity's path."""

    @classmethod
    def decode(cls: type[_EntityT], data: bytes) -> _EntityT:
        """Rebuild an entity from bytes produced by :meth:`encode`."""


def _encode_payload(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")


def _decode_payload(data: bytes, kind: str) -> dict[str, Any]:
    """
    Parse stored bytes into a JSON object.

    Raises
    ------
    EntityDecodeError
        If the bytes are not UTF-8 JSON or do not hold an object.
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise EntityDecodeError(f"Cannot decode {kind} payload: {exc}") from exc
    if not isinstance(payload, dict):
        raise EntityDecodeError(f"{kind} payload must be a JSON object.")
    return payload


def _build(cls: type[_EntityT], payload: dict[str, Any], kind: str) -> _EntityT:
    try:
        return cls.from_dict(payload)  # type: ignore[attr-defined]
    except (KeyError, TypeError, ValueError) as exc:
        raise EntityDecodeError(f"Invalid {kind} payload: {exc}") from exc


@dataclass(slots=True)
class Topom:
    """
    Leader descriptor written to the ``topom`` lock node.

    Whoever manages to create the node with this payload owns the cluster
    topology until it deletes the node again.
    """

    token: str = ""
    start_time: str = ""
    admin_addr: str = ""
    product_name: str = ""
    pid: int = 0
    pwd: str = ""
    sys: str = ""

    def encode(self) -> bytes:
        return _encode_payload(asdict(self))

    @classmethod
    def decode(cls, data: bytes) -> "Topom":
        return _build(cls, _decode_payload(data, "topom"), "topom")

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Topom":
        return cls(
            token=str(payload.get("token", "")),
            start_time=str(payload.get("start_time", "")),
            admin_addr=str(payload.get("admin_addr", "")),
            product_name=str(payload.get("product_name", "")),
            pid=int(payload.get("pid", 0)),
            pwd=str(payload.get("pwd", "")),
            sys=str(payload.get("sys", "")),
        )


@dataclass(slots=True)
class SlotAction:
    """Pending migration step attached to a slot mapping."""

    index: int = 0
    state: str = ""
    target_id: int = 0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "SlotAction":
        return cls(
            index=int(payload.get("index", 0)),
            state=str(payload.get("state", "")),
            target_id=int(payload.get("target_id", 0)),
        )


@dataclass(slots=True)
class SlotMapping:
    """Assignment of one slot to the group currently serving it."""

    id: int
    group_id: int = 0
    action: SlotAction = field(default_factory=SlotAction)

    def encode(self) -> bytes:
        return _encode_payload(asdict(self))

    @classmethod
    def decode(cls, data: bytes) -> "SlotMapping":
        return _build(cls, _decode_payload(data, "slot mapping"), "slot mapping")

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "SlotMapping":
        action = payload.get("action") or {}
        if not isinstance(action, dict):
            raise ValueError("action must be an object")
        return cls(
            id=int(payload["id"]),
            group_id=int(payload.get("group_id", 0)),
            action=SlotAction.from_dict(action),
        )


@dataclass(slots=True)
class Proxy:
    """Descriptor of one routing proxy instance."""

    id: int
    token: str = ""
    start_time: str = ""
    admin_addr: str = ""
    proto_type: str = "tcp4"
    proxy_addr: str = ""
    product_name: str = ""
    pid: int = 0
    pwd: str = ""
    sys: str = ""
    hostname: str = ""
    datacenter: str = ""

    def encode(self) -> bytes:
        return _encode_payload(asdict(self))

    @classmethod
    def decode(cls, data: bytes) -> "Proxy":
        return _build(cls, _decode_payload(data, "proxy"), "proxy")

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Proxy":
        return cls(
            id=int(payload["id"]),
            token=str(payload.get("token", "")),
            start_time=str(payload.get("start_time", "")),
            admin_addr=str(payload.get("admin_addr", "")),
            proto_type=str(payload.get("proto_type", "tcp4")),
            proxy_addr=str(payload.get("proxy_addr", "")),
            product_name=str(payload.get("product_name", "")),
            pid=int(payload.get("pid", 0)),
            pwd=str(payload.get("pwd", "")),
            sys=str(payload.get("sys", "")),
            hostname=str(payload.get("hostname", "")),
            datacenter=str(payload.get("datacenter", "")),
        )


@dataclass(slots=True)
class Group:
    """
    Descriptor of one replica group.

    ``servers`` lists member addresses with the master first. ``promoting``
    holds the state of an in-flight replica promotion, empty when idle.
    """

    id: int
    servers: list[str] = field(default_factory=list)
    promoting: dict[str, Any] = field(default_factory=dict)
    out_of_sync: bool = False

    def encode(self) -> bytes:
        return _encode_payload(asdict(self))

    @classmethod
    def decode(cls, data: bytes) -> "Group":
        return _build(cls, _decode_payload(data, "group"), "group")

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Group":
        servers = payload.get("servers") or []
        promoting = payload.get("promoting") or {}
        if not isinstance(servers, list):
            raise ValueError("servers must be a list")
        if not isinstance(promoting, dict):
            raise ValueError("promoting must be an object")
        return cls(
            id=int(payload["id"]),
            servers=[str(server) for server in servers],
            promoting=dict(promoting),
            out_of_sync=bool(payload.get("out_of_sync", False)),
        )
