from __future__ import annotations

from typing import Any


class MetadataStoreDiagnosticsMixin:
    """
    Public diagnostics helpers.
    """

    def stats(self) -> dict[str, Any]:
        """
        Return cumulative counters and live protection gauges.
        """
        with self._stats_lock:
            payload: dict[str, Any] = dict(self._stats)
        for key in (
            "acquire_success",
            "acquire_failures",
            "release_success",
            "release_failures",
            "guard_rejections",
            "coordination_failures",
            "protected_operations",
        ):
            payload.setdefault(key, 0)
        with self._lock:
            payload["protected"] = self._protected
            payload["closed"] = self._closed
            payload["prefix"] = self._prefix
        return payload
