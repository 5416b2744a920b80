"""
Retrying Fetcher Module

Fetches the children of a single node through the source throttle. No
recursion here, the TreeWalker decides which nodes to expand.
"""

import time
from typing import Callable, List, Optional

from doc_mirror.clients.base import SourceClient
from doc_mirror.constants import CLICKUP_CONTENT_FORMAT
from doc_mirror.core.retry import RetryPolicy, with_retry
from doc_mirror.core.throttle import Throttle
from doc_mirror.exceptions import NonRetryableFetchError, NotFoundError, SubtreeUnavailable, TransientFetchError
from doc_mirror.models import DocumentNode
from doc_mirror.sync.reporter import SyncReporter


class RetryingFetcher:
    """Throttled, retrying `list_children` with classified error handling."""

    def __init__(self, source: SourceClient, throttle: Throttle, policy: Optional[RetryPolicy] = None,
                 reporter: Optional[SyncReporter] = None, content_format: str = CLICKUP_CONTENT_FORMAT,
                 sleep: Callable[[float], None] = time.sleep):
        self.source = source
        self.throttle = throttle
        self.policy = policy or RetryPolicy()
        self.reporter = reporter or SyncReporter()
        self.content_format = content_format
        self.sleep = sleep

    def _attempt(self, parent_id: str, depth: int, doc_id: Optional[str]):
        # one permit per attempt, so retries are paced like any other request
        with self.throttle:
            return self.source.list_children(parent_id, max_depth=depth,
                                             content_format=self.content_format, doc_id=doc_id)

    def fetch_children(self, parent_id: str, depth: int = 1, doc_id: Optional[str] = None) -> List[DocumentNode]:
        """
        Fetch the nodes directly below `parent_id`.

        Args:
            parent_id: Root document id or page id
            depth: Levels the server should expand per call
            doc_id: Root document the page belongs to (None for a root)

        Returns:
            The child nodes, unexpanded. Empty when the source reports 404.

        Raises:
            SubtreeUnavailable: retries exhausted, or a non-retryable error
        """
        def on_retry(attempt, max_attempts, error, delay):
            self.reporter.fetch_retry(parent_id, attempt, max_attempts, error, delay)

        try:
            records = with_retry(self._attempt, parent_id, depth, doc_id,
                                 policy=self.policy, retryable=(TransientFetchError,),
                                 on_retry=on_retry, sleep=self.sleep)
        except NotFoundError:
            self.reporter.subtree_missing(parent_id)
            return []
        except (TransientFetchError, NonRetryableFetchError) as e:
            raise SubtreeUnavailable(parent_id, e) from e

        owner = doc_id or parent_id
        try:
            return [DocumentNode.from_api(record, doc_id=owner) for record in records]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SubtreeUnavailable(parent_id, NonRetryableFetchError(f"页面记录格式错误: {e}")) from e
