"""
Upsert Pipeline Module

Delivers syncable nodes to the destination in fixed-size batches. Writes in
a batch run concurrently (bounded by the destination throttle), batches run
one after another with a pause in between. A failed write is recorded and
never retried or re-raised.
"""

import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional

from doc_mirror.clients.base import DestinationClient
from doc_mirror.constants import DEFAULT_BATCH_PAUSE, DEFAULT_BATCH_SIZE
from doc_mirror.core.throttle import Throttle
from doc_mirror.models import DestinationEnvelope, DocumentNode, RunResult, UpsertFailure
from doc_mirror.sync.reporter import SyncReporter
from doc_mirror.utils import chunked, derive_document_id, ms_to_iso


def render_text(node: DocumentNode) -> str:
    """The text block stored at the destination for one page."""
    text = (
        f"Title: {node.title}\n"
        f"Created At: {ms_to_iso(node.created_at)}\n"
        f"Updated At: {ms_to_iso(node.updated_at)}\n"
        f"Content:\n"
        f"{node.body}"
    )
    return text.strip()


def build_envelope(node: DocumentNode, source_url: str) -> DestinationEnvelope:
    return DestinationEnvelope(derive_document_id(node), render_text(node), source_url)


class UpsertPipeline:
    """Batched, throttled, failure-isolating writer."""

    def __init__(self, destination: DestinationClient, throttle: Throttle,
                 url_for: Callable[[DocumentNode], str],
                 batch_size: int = DEFAULT_BATCH_SIZE, batch_pause: float = DEFAULT_BATCH_PAUSE,
                 max_workers: Optional[int] = None, dry_run: bool = False,
                 reporter: Optional[SyncReporter] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            destination: Where documents are written
            throttle: Destination lane throttle
            url_for: Builds the source URL stored with each document
            batch_size: Documents per batch
            batch_pause: Seconds to wait between batches
            max_workers: Parallel writes per batch, defaults to
                         min(batch_size, throttle.max_concurrent)
            dry_run: Build envelopes and report them without writing
            reporter: Diagnostics observer
            sleep: Sleep function, replaceable in tests
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.destination = destination
        self.throttle = throttle
        self.url_for = url_for
        self.batch_size = batch_size
        self.batch_pause = batch_pause
        self.max_workers = max_workers or min(batch_size, throttle.max_concurrent)
        self.dry_run = dry_run
        self.reporter = reporter or SyncReporter()
        self.sleep = sleep

    def upsert(self, node: DocumentNode) -> Optional[UpsertFailure]:
        """
        Write one node. Exactly one destination request per call (none in dry-run).

        Returns:
            None on success, an UpsertFailure otherwise
        """
        document_id = derive_document_id(node)
        try:
            envelope = build_envelope(node, self.url_for(node))
            if not self.dry_run:
                with self.throttle:
                    self.destination.put_document(envelope.document_id, envelope)
        except Exception as e:
            # isolation boundary: one bad document must not stop its siblings
            self.reporter.upsert_failed(document_id, e)
            return UpsertFailure(document_id, e)

        self.reporter.upserted(envelope, dry_run=self.dry_run)
        return None

    def deliver(self, nodes: List[DocumentNode]) -> RunResult:
        """Write every node, batch by batch. Never raises for a failed write."""
        result = RunResult()
        result.candidates = len(nodes)
        if not nodes:
            return result

        batches = chunked(nodes, self.batch_size)
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="upsert") as executor:
            for index, batch in enumerate(batches, start=1):
                self.reporter.batch_started(index, len(batches), len(batch))
                futures = [executor.submit(self.upsert, node) for node in batch]
                # batch N+1 starts only after every write of batch N was attempted
                wait(futures)

                for future in futures:
                    failure = future.result()
                    if failure is None:
                        result.record_success()
                    else:
                        result.failures.append(failure)

                if index < len(batches) and self.batch_pause > 0:
                    self.sleep(self.batch_pause)

        return result
