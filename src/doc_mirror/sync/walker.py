"""
Tree Walker Module

Expands a root document into its page tree and flattens the tree into the
list of pages worth syncing.
"""

from typing import Iterable, List, Optional, Set

from doc_mirror.exceptions import SubtreeUnavailable
from doc_mirror.models import DocumentNode
from doc_mirror.sync.fetcher import RetryingFetcher
from doc_mirror.sync.reporter import SyncReporter


def is_syncable(node: DocumentNode) -> bool:
    """A node is synced iff it has a non-blank body and is not archived."""
    return bool(node.body and node.body.strip()) and not node.archived


def flatten(nodes: Iterable[DocumentNode], reporter: Optional[SyncReporter] = None) -> List[DocumentNode]:
    """
    Depth-first, parent-before-children list of the syncable nodes.

    Excluded nodes are still descended into: an archived or empty page may
    have live subpages. A node id seen twice is only tested the first time.
    """
    result: List[DocumentNode] = []
    seen: Set[str] = set()

    def visit(node: DocumentNode):
        if node.id in seen:
            if reporter:
                reporter.duplicate_node(node.id)
            return
        seen.add(node.id)
        if is_syncable(node):
            result.append(node)
        for child in node.children:
            visit(child)

    for node in nodes:
        visit(node)
    return result


class TreeWalker:
    """Builds the tree below a root by asking the fetcher level by level."""

    def __init__(self, fetcher: RetryingFetcher, max_depth: Optional[int] = None,
                 reporter: Optional[SyncReporter] = None):
        """
        Args:
            fetcher: Fetches one node's children
            max_depth: Levels below the root to expand; None is unbounded,
                       1 stops at the root's immediate children
            reporter: Diagnostics observer
        """
        if max_depth is not None and max_depth < 1:
            raise ValueError("max_depth must be >= 1 or None")
        self.fetcher = fetcher
        self.max_depth = max_depth
        self.reporter = reporter or fetcher.reporter

    def expand(self, root_id: str) -> List[DocumentNode]:
        """
        Fetch the full tree below `root_id` (the root itself is not a page).

        Raises:
            SubtreeUnavailable: if the root's own children cannot be fetched
        """
        seen: Set[str] = {root_id}
        top = self._unique(self.fetcher.fetch_children(root_id), seen)
        self._expand_level(top, 1, root_id, seen)
        return top

    def _unique(self, nodes: List[DocumentNode], seen: Set[str]) -> List[DocumentNode]:
        # guards against a source that lists a page under two parents or under itself
        unique = []
        for node in nodes:
            if node.id in seen:
                self.reporter.duplicate_node(node.id)
                continue
            seen.add(node.id)
            unique.append(node)
        return unique

    def _expand_level(self, nodes: List[DocumentNode], level: int, doc_id: str, seen: Set[str]):
        if self.max_depth is not None and level >= self.max_depth:
            return

        for node in nodes:
            if node.has_children is False:
                continue
            try:
                children = self.fetcher.fetch_children(node.id, doc_id=node.doc_id or doc_id)
            except SubtreeUnavailable as e:
                self.reporter.subtree_degraded(node, e)
                node.children = []
                continue
            node.children = self._unique(children, seen)
            self._expand_level(node.children, level + 1, doc_id, seen)
