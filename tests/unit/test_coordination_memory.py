"""
Unit tests for the in-memory coordination service and client handles.
"""

from __future__ import annotations

import threading
import unittest

from topology_store.coordination import (
    InMemoryCoordinationClient,
    InMemoryCoordinationService,
    normalize_path,
)
from topology_store.exceptions import (
    CoordinationError,
    NodeExistsError,
    NodeNotEmptyError,
    NoNodeError,
)


class InMemoryCoordinationClientTest(unittest.TestCase):
    def setUp(self) -> None:
        self.service = InMemoryCoordinationService()
        self.client = InMemoryCoordinationClient(self.service)

    def test_create_implicitly_creates_parents(self) -> None:
        self.client.create("/zk/codis2/demo/topom", b"leader")

        self.assertEqual(b"leader", self.client.load_data("/zk/codis2/demo/topom"))
        self.assertEqual(b"", self.client.load_data("/zk/codis2/demo"))
        self.assertEqual(["/zk"], self.client.list_children("/"))
        self.assertEqual(["/zk/codis2/demo/topom"], self.client.list_children("/zk/codis2/demo"))

    def test_create_existing_path_fails_and_keeps_data(self) -> None:
        self.client.create("/a/b", b"first")
        with self.assertRaises(NodeExistsError):
            self.client.create("/a/b", b"second")
        self.assertEqual(b"first", self.client.load_data("/a/b"))

    def test_create_over_implicit_directory_fails(self) -> None:
        self.client.create("/a/b/c", b"x")
        with self.assertRaises(NodeExistsError):
            self.client.create("/a/b", b"y")

    def test_update_requires_existing_node(self) -> None:
        with self.assertRaises(NoNodeError):
            self.client.update("/missing", b"x")
        self.assertIsNone(self.client.load_data("/missing"))

        self.client.create("/present", b"old")
        self.client.update("/present", b"new")
        self.assertEqual(b"new", self.client.load_data("/present"))

    def test_delete_semantics(self) -> None:
        with self.assertRaises(NoNodeError):
            self.client.delete("/missing")

        self.client.create("/dir/leaf", b"x")
        with self.assertRaises(NodeNotEmptyError):
            self.client.delete("/dir")

        self.client.delete("/dir/leaf")
        self.assertIsNone(self.client.load_data("/dir/leaf"))
        self.assertEqual([], self.client.list_children("/dir"))
        self.client.delete("/dir")
        self.assertFalse(self.service.exists("/dir"))

    def test_list_children_is_sorted_and_missing_directory_is_empty(self) -> None:
        for name in ("group-0003", "group-0001", "group-0002"):
            self.client.create(f"/g/{name}", name.encode())

        self.assertEqual(
            ["/g/group-0001", "/g/group-0002", "/g/group-0003"],
            self.client.list_children("/g/"),
        )
        self.assertEqual([], self.client.list_children("/nothing/here"))

    def test_invalid_paths_are_rejected(self) -> None:
        for path in ("relative/path", "/a//b", "/a/../b", "/a/./b"):
            with self.subTest(path=path):
                with self.assertRaises(CoordinationError):
                    normalize_path(path)
        with self.assertRaises(CoordinationError):
            self.client.delete("/")

    def test_clients_share_one_service(self) -> None:
        other = InMemoryCoordinationClient(self.service)
        self.client.create("/shared", b"payload")

        self.assertEqual(b"payload", other.load_data("/shared"))
        with self.assertRaises(NodeExistsError):
            other.create("/shared", b"mine")

    def test_closed_client_rejects_calls_and_close_is_idempotent(self) -> None:
        self.client.close()
        self.client.close()

        self.assertTrue(self.client.is_closed)
        with self.assertRaises(CoordinationError):
            self.client.load_data("/x")
        with self.assertRaises(CoordinationError):
            self.client.create("/x", b"")

    def test_injected_logger_receives_client_messages(self) -> None:
        messages: list[str] = []
        self.client.set_logger(lambda fmt, *args: messages.append(fmt % args))

        self.client.create("/logged", b"abc")
        self.client.delete("/logged")

        self.assertIn("coordination create path=/logged bytes=3", messages)
        self.assertIn("coordination delete path=/logged", messages)

    def test_concurrent_creates_have_exactly_one_winner(self) -> None:
        clients = [InMemoryCoordinationClient(self.service) for _ in range(8)]
        barrier = threading.Barrier(len(clients))
        outcomes: list[str] = []
        outcomes_lock = threading.Lock()

        def contend(client: InMemoryCoordinationClient, index: int) -> None:
            barrier.wait()
            try:
                client.create("/race/topom", str(index).encode())
                result = "won"
            except NodeExistsError:
                result = "lost"
            with outcomes_lock:
                outcomes.append(result)

        threads = [
            threading.Thread(target=contend, args=(client, index))
            for index, client in enumerate(clients)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5.0)

        self.assertEqual(1, outcomes.count("won"))
        self.assertEqual(len(clients) - 1, outcomes.count("lost"))


if __name__ == "__main__":
    unittest.main()
