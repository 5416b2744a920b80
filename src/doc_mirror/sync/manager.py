"""
Sync Manager Module

Runs fetch -> flatten -> upsert for each root document and folds the
per-root outcomes into one RunResult.

Per root:  Fetching -> Flattening -> Upserting -> Done
                 \\-> Errored (root skipped, next root)
"""

import time
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

from doc_mirror.clients import ClickUpClient, DustClient
from doc_mirror.clients.base import DestinationClient, SourceClient
from doc_mirror.config import SyncConfig
from doc_mirror.core.retry import RetryPolicy, with_retry
from doc_mirror.core.throttle import Throttle
from doc_mirror.exceptions import FetchError, SubtreeUnavailable, TransientFetchError
from doc_mirror.models import RootRef, RunResult
from doc_mirror.sync.fetcher import RetryingFetcher
from doc_mirror.sync.reporter import LoggingReporter, SyncReporter
from doc_mirror.sync.upsert import UpsertPipeline
from doc_mirror.sync.walker import TreeWalker, flatten

# Marker id recorded when the root list itself cannot be fetched
ROOT_LISTING = "*"


class RootState(Enum):
    FETCHING = "fetching"
    FLATTENING = "flattening"
    UPSERTING = "upserting"
    DONE = "done"
    ERRORED = "errored"


class SyncManager:
    """Mirrors one or many root documents from the source to the destination."""

    def __init__(self, source: SourceClient, destination: DestinationClient,
                 source_throttle: Throttle, destination_throttle: Throttle,
                 config: Optional[SyncConfig] = None, reporter: Optional[SyncReporter] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.source = source
        self.destination = destination
        self.source_throttle = source_throttle
        self.destination_throttle = destination_throttle
        self.config = config or SyncConfig()
        self.reporter = reporter or LoggingReporter()
        self.sleep = sleep
        self.states = {}  # root id -> RootState of the last run

        self.policy = RetryPolicy(
            max_attempts=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            max_delay=self.config.retry_max_delay,
            strategy=self.config.backoff,
        )
        self.fetcher = RetryingFetcher(source, source_throttle, self.policy,
                                       reporter=self.reporter, sleep=sleep)
        self.walker = TreeWalker(self.fetcher, max_depth=self.config.max_depth, reporter=self.reporter)
        self.pipeline = UpsertPipeline(
            destination,
            destination_throttle,
            url_for=source.page_url,
            batch_size=self.config.batch_size,
            batch_pause=self.config.batch_pause,
            dry_run=self.config.dry_run,
            reporter=self.reporter,
            sleep=sleep,
        )

    @classmethod
    def from_config(cls, config: SyncConfig, reporter: Optional[SyncReporter] = None) -> "SyncManager":
        """Build clients and the two lane throttles from a validated config."""
        source = ClickUpClient(config.clickup_api_key, config.clickup_workspace_id,
                               base_url=config.clickup_base_url, timeout=config.request_timeout)
        destination = DustClient(config.dust_api_key, config.dust_workspace_id, config.dust_vault_id,
                                 config.dust_datasource_id, base_url=config.dust_base_url,
                                 timeout=config.request_timeout)
        source_throttle = Throttle("clickup", max_concurrent=config.source_max_concurrent,
                                   min_interval=config.source_min_interval,
                                   tokens=config.source_tokens,
                                   refill_interval=config.source_refill_interval)
        destination_throttle = Throttle("dust", max_concurrent=config.destination_max_concurrent,
                                        min_interval=config.destination_min_interval,
                                        tokens=config.destination_tokens,
                                        refill_interval=config.destination_refill_interval)
        return cls(source, destination, source_throttle, destination_throttle, config=config, reporter=reporter)

    def resolve_roots(self, root_ids: Optional[Sequence[Union[str, RootRef]]] = None) -> List[RootRef]:
        """
        Roots to process: explicit ids, else every doc (all_docs), else the configured doc.

        Raises:
            SubtreeUnavailable: if the root listing cannot be fetched
        """
        if root_ids:
            return [r if isinstance(r, RootRef) else RootRef(r) for r in root_ids]
        if self.config.all_docs:
            def list_roots():
                with self.source_throttle:
                    return self.source.list_roots()

            def on_retry(attempt, max_attempts, error, delay):
                self.reporter.fetch_retry(ROOT_LISTING, attempt, max_attempts, error, delay)

            try:
                return with_retry(list_roots, policy=self.policy, retryable=(TransientFetchError,),
                                  on_retry=on_retry, sleep=self.sleep)
            except FetchError as e:
                raise SubtreeUnavailable(ROOT_LISTING, e) from e
        return [RootRef(self.config.clickup_doc_id)] if self.config.clickup_doc_id else []

    def sync_root(self, root: RootRef) -> RunResult:
        """
        Fetch, flatten and upsert one root.

        Raises:
            SubtreeUnavailable: if the root's pages cannot be fetched
        """
        self.states[root.id] = RootState.FETCHING
        tree = self.walker.expand(root.id)

        self.states[root.id] = RootState.FLATTENING
        candidates = flatten(tree, reporter=self.reporter)
        self.reporter.candidates_found(root, len(candidates))

        self.states[root.id] = RootState.UPSERTING
        result = self.pipeline.deliver(candidates)
        result.roots_processed = 1

        self.states[root.id] = RootState.DONE
        return result

    def run(self, root_ids: Optional[Sequence[Union[str, RootRef]]] = None) -> RunResult:
        """
        Sync every root and return the combined result.

        Fetch failures skip the affected root; upsert failures are recorded per
        document. Nothing is raised past this method.
        """
        result = RunResult()
        self.states = {}

        try:
            roots = self.resolve_roots(root_ids)
        except SubtreeUnavailable as e:
            result.record_root_failure(ROOT_LISTING, e)
            self.reporter.root_skipped(RootRef(ROOT_LISTING, "root listing"), e)
            self.reporter.run_finished(result)
            return result

        self.reporter.run_started(roots)
        for root in roots:
            self.reporter.root_started(root)
            try:
                root_result = self.sync_root(root)
            except SubtreeUnavailable as e:
                self.states[root.id] = RootState.ERRORED
                result.record_root_failure(root.id, e)
                self.reporter.root_skipped(root, e)
                continue
            self.reporter.root_finished(root, root_result)
            result.merge(root_result)

        self.reporter.run_finished(result)
        return result
