"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
from typing import Any, Dict, List, Optional

import pytest

# Add src/ to path so tests run from a plain checkout
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from doc_mirror.clients.base import DestinationClient, SourceClient  # noqa: E402
from doc_mirror.core.throttle import Throttle  # noqa: E402
from doc_mirror.exceptions import NotFoundError, UpsertError  # noqa: E402
from doc_mirror.sync.reporter import SyncReporter  # noqa: E402


def page(id: str, content: str = "", archived: bool = False, name: Optional[str] = None,
         leaf: bool = False, **extra) -> Dict[str, Any]:
    """A ClickUp-shaped page record."""
    record = {
        "id": id,
        "name": name if name is not None else f"Page {id}",
        "content": content,
        "archived": archived,
        "date_created": 1704672000000,
        "date_updated": 1704758400000,
    }
    if leaf:
        record["pages"] = []
    record.update(extra)
    return record


class FakeSource(SourceClient):
    """In-memory source tree.

    tree: node id -> list of page records below it (missing ids answer 404)
    errors: node id -> exceptions raised, in order, before the tree is served
    """

    def __init__(self, tree: Optional[Dict[str, List[dict]]] = None, roots=None,
                 errors: Optional[Dict[str, List[Exception]]] = None):
        self.tree = tree or {}
        self.roots = roots or []
        self.errors = errors or {}
        self.calls: List[str] = []
        self.root_calls = 0

    def list_roots(self):
        self.root_calls += 1
        pending = self.errors.get("*")
        if pending:
            raise pending.pop(0)
        return list(self.roots)

    def list_children(self, node_id, max_depth=1, content_format="text/md", doc_id=None):
        self.calls.append(node_id)
        pending = self.errors.get(node_id)
        if pending:
            raise pending.pop(0)
        if node_id not in self.tree:
            raise NotFoundError(f"{node_id} not found")
        return [dict(record) for record in self.tree[node_id]]

    def page_url(self, node):
        return f"https://app.example.test/v/dc/{node.doc_id}/{node.id}"


class FakeDestination(DestinationClient):
    """Thread-safe in-memory destination that can be told to fail on some ids."""

    def __init__(self, fail_ids=(), delay: float = 0.0):
        self.documents: Dict[str, Any] = {}
        self.calls: List[str] = []
        self.fail_ids = set(fail_ids)
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def put_document(self, document_id, envelope):
        with self._lock:
            self.calls.append(document_id)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                threading.Event().wait(self.delay)
            if document_id in self.fail_ids:
                raise UpsertError(document_id, "boom", status_code=500)
            with self._lock:
                self.documents[document_id] = envelope
        finally:
            with self._lock:
                self.active -= 1


class RecordingReporter(SyncReporter):
    """Collects hook calls as (name, args) tuples."""

    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def _record(self, name, *args):
        with self._lock:
            self.events.append((name,) + args)

    def names(self):
        return [event[0] for event in self.events]

    def fetch_retry(self, node_id, attempt, max_attempts, error, delay):
        self._record("fetch_retry", node_id, attempt, max_attempts, error, delay)

    def subtree_missing(self, node_id):
        self._record("subtree_missing", node_id)

    def subtree_degraded(self, node, error):
        self._record("subtree_degraded", node.id, error)

    def duplicate_node(self, node_id):
        self._record("duplicate_node", node_id)

    def root_skipped(self, root, error):
        self._record("root_skipped", root.id, error)

    def upserted(self, envelope, dry_run=False):
        self._record("upserted", envelope.document_id, dry_run)

    def upsert_failed(self, document_id, error):
        self._record("upsert_failed", document_id, error)

    def batch_started(self, index, total, size):
        self._record("batch_started", index, total, size)


class SleepRecorder:
    """Drop-in for time.sleep that only remembers the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def fast_throttle():
    return Throttle("test")


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def sleeper():
    return SleepRecorder()
