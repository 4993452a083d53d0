"""
Integration tests for exclusive topology ownership.

Several independent stores race for one cluster's leadership node. In-process
tests share an in-memory coordination service; the process-level tests launch
separate interpreters and, when ``TOPOLOGY_STORE_REDIS_URL`` is set, point
them at one Redis database.
"""

from __future__ import annotations

import json
import os
import select
import subprocess
import sys
import threading
import time
import unittest
import uuid
from pathlib import Path
from typing import Any

from topology_store import (
    Group,
    InMemoryCoordinationClient,
    InMemoryCoordinationService,
    MetadataStore,
    NodeExistsError,
    Topom,
)

REPO_ROOT = Path(__file__).resolve().parents[2]
STORE_SCRIPT = Path(__file__).with_name("store_instance.py")
REDIS_URL = os.environ.get("TOPOLOGY_STORE_REDIS_URL", "")


def read_json_line(proc: subprocess.Popen[str], timeout_seconds: float) -> dict[str, Any]:
    """
    Read one JSON line from a subprocess stdout pipe with timeout.

    Raises
    ------
    TimeoutError
        If no line is received before the timeout.
    RuntimeError
        If the process exits before producing output.
    """
    if proc.stdout is None:
        raise RuntimeError("Process stdout pipe is not available.")
    deadline = time.monotonic() + timeout_seconds

    while time.monotonic() < deadline:
        remaining = max(0.0, deadline - time.monotonic())
        ready, _, _ = select.select([proc.stdout.fileno()], [], [], remaining)
        if not ready:
            continue
        line = proc.stdout.readline()
        if line == "":
            stderr = ""
            if proc.stderr is not None:
                stderr = proc.stderr.read()
            raise RuntimeError(f"Process exited before response. stderr={stderr!r}")
        return json.loads(line)
    raise TimeoutError("Timed out waiting for subprocess output.")


def start_store_process(*extra_args: str) -> subprocess.Popen[str]:
    """Start one store helper process and wait for its ready event."""
    proc = subprocess.Popen(
        [sys.executable, str(STORE_SCRIPT), *extra_args],
        cwd=str(REPO_ROOT),
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        bufsize=1,
    )
    ready = read_json_line(proc, timeout_seconds=10.0)
    if ready.get("event") != "ready":
        raise RuntimeError(f"Unexpected startup response: {ready}")
    return proc


def send(proc: subprocess.Popen[str], payload: dict[str, Any], *, timeout_seconds: float = 5.0) -> dict[str, Any]:
    """Send one command to a store helper and return the raw response."""
    if proc.stdin is None:
        raise RuntimeError("Process stdin pipe is not available.")
    proc.stdin.write(json.dumps(payload, separators=(",", ":"), sort_keys=True) + "\n")
    proc.stdin.flush()
    return read_json_line(proc, timeout_seconds=timeout_seconds)


def send_ok(proc: subprocess.Popen[str], payload: dict[str, Any]) -> Any:
    """Send one command and return its result, failing on error responses."""
    response = send(proc, payload)
    if not response.get("ok", False):
        raise AssertionError(f"Store command failed: {response.get('error')}")
    return response.get("result")


def stop_store_process(proc: subprocess.Popen[str]) -> None:
    """
    Stop helper process gracefully and force kill only as a fallback.
    """
    if proc.poll() is not None:
        return
    try:
        send(proc, {"cmd": "stop"}, timeout_seconds=3.0)
        proc.wait(timeout=5.0)
    except Exception:
        proc.terminate()
        try:
            proc.wait(timeout=3.0)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait(timeout=3.0)


class InProcessLeaderExclusionTest(unittest.TestCase):
    """
    Stores sharing one in-memory coordination service.
    """

    def test_exactly_one_of_many_racing_stores_acquires(self) -> None:
        service = InMemoryCoordinationService()
        stores = [MetadataStore(InMemoryCoordinationClient(service)) for _ in range(6)]
        for store in stores:
            self.addCleanup(store.close)
        barrier = threading.Barrier(len(stores))
        failures: dict[int, BaseException] = {}
        failures_lock = threading.Lock()

        def contend(index: int) -> None:
            barrier.wait()
            try:
                stores[index].acquire("demo", Topom(token=f"token-{index}"))
            except BaseException as exc:  # noqa: BLE001 - inspected below
                with failures_lock:
                    failures[index] = exc

        threads = [threading.Thread(target=contend, args=(index,)) for index in range(len(stores))]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5.0)

        winners = [store for store in stores if store.is_protected]
        self.assertEqual(1, len(winners))
        self.assertEqual(len(stores) - 1, len(failures))
        for exc in failures.values():
            self.assertIsInstance(exc, NodeExistsError)

        winner_token = Topom.decode(service.load_data("/zk/codis2/demo/topom")).token
        self.assertEqual(winner_token, f"token-{stores.index(winners[0])}")

    def test_loser_takes_over_after_release(self) -> None:
        service = InMemoryCoordinationService()
        leader = MetadataStore(InMemoryCoordinationClient(service))
        standby = MetadataStore(InMemoryCoordinationClient(service))
        self.addCleanup(leader.close)
        self.addCleanup(standby.close)

        leader.acquire("demo", Topom(token="leader"))
        leader.create_group(1, Group(id=1, servers=["10.0.0.1:6379"]))
        with self.assertRaises(NodeExistsError):
            standby.acquire("demo", Topom(token="standby"))
        self.assertFalse(standby.is_protected)

        leader.release()
        standby.acquire("demo", Topom(token="standby"))

        self.assertEqual([Group(id=1, servers=["10.0.0.1:6379"])], standby.list_group())
        with self.assertRaises(NodeExistsError):
            leader.acquire("demo", Topom(token="leader"))


class StoreProcessTest(unittest.TestCase):
    """
    Drive stores living in separate interpreter processes.
    """

    def test_single_process_round_trip(self) -> None:
        proc = start_store_process("--backend", "memory")
        self.addCleanup(stop_store_process, proc)

        unprotected = send(proc, {"cmd": "list_group"})
        self.assertFalse(unprotected["ok"])
        self.assertEqual("NotProtectedError", unprotected["error_type"])

        self.assertEqual("/zk/codis2/demo", send_ok(proc, {"cmd": "acquire", "name": "demo", "token": "t"}))
        send_ok(proc, {"cmd": "create_group", "id": 1, "servers": ["a:1"]})
        self.assertIsNone(send_ok(proc, {"cmd": "load_slot", "id": 7}))
        self.assertEqual(
            [{"id": 1, "servers": ["a:1"], "promoting": {}, "out_of_sync": False}],
            send_ok(proc, {"cmd": "list_group"}),
        )
        send_ok(proc, {"cmd": "release"})
        self.assertFalse(send_ok(proc, {"cmd": "stats"})["protected"])

    @unittest.skipUnless(REDIS_URL, "TOPOLOGY_STORE_REDIS_URL is not set.")
    def test_two_processes_race_for_one_cluster(self) -> None:
        key_prefix = f"it-{uuid.uuid4().hex}"
        args = ("--backend", "redis", "--redis-url", REDIS_URL, "--key-prefix", key_prefix)
        first = start_store_process(*args)
        second = start_store_process(*args)
        self.addCleanup(stop_store_process, first)
        self.addCleanup(stop_store_process, second)

        responses = [
            send(proc, {"cmd": "acquire", "name": "demo", "token": f"token-{index}"})
            for index, proc in enumerate((first, second))
        ]
        self.assertEqual([True, False], [response["ok"] for response in responses])
        self.assertEqual("NodeExistsError", responses[1]["error_type"])

        send_ok(first, {"cmd": "save_slot", "id": 3, "group_id": 2})
        stop_store_process(first)

        send_ok(second, {"cmd": "acquire", "name": "demo", "token": "token-1"})
        self.assertEqual(
            {"id": 3, "group_id": 2, "action": {"index": 0, "state": "", "target_id": 0}},
            send_ok(second, {"cmd": "load_slot", "id": 3}),
        )
        send_ok(second, {"cmd": "release"})


if __name__ == "__main__":
    unittest.main()
