"""
Custom exceptions used by the topology metadata store.

Keeping library-specific errors in one module gives callers a predictable
import surface for telling protection-state violations apart from failures
reported by the coordination service.
"""


class TopologyStoreError(Exception):
    """Base error type for all library-level exceptions."""


class StoreClosedError(TopologyStoreError):
    """Raised when any operation other than ``close`` runs on a closed store."""


class AlreadyProtectedError(TopologyStoreError):
    """
    Raised when ``acquire`` is called while the store already holds the
    leadership token.
    """


class NotProtectedError(TopologyStoreError):
    """
    Raised when a topology read/write or ``release`` runs without the
    leadership token.

    Every slot, proxy and group operation requires a successful ``acquire``
    first; this error is how that rule surfaces to callers.
    """


class CoordinationError(TopologyStoreError):
    """
    Raised for any failure reported by the coordination client.

    Callers holding the leadership token should treat this error as a possible
    loss of leadership and re-validate before issuing more writes.
    """


class NodeExistsError(CoordinationError):
    """Raised when creating a path that already exists."""


class NoNodeError(CoordinationError):
    """Raised when updating or deleting a path that does not exist."""


class NodeNotEmptyError(CoordinationError):
    """Raised when deleting a node that still has children."""


class EntityDecodeError(CoordinationError):
    """
    Raised when stored bytes cannot be decoded into a topology entity.

    This typically indicates a corrupt payload or a node written by a foreign,
    incompatible tool.
    """


class BackendConfigurationError(TopologyStoreError):
    """Raised when a coordination backend name or its options are invalid."""


class BackendNotAvailableError(TopologyStoreError):
    """Raised when a coordination backend plugin is not installed."""
