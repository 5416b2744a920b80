"""
Data Model Module

Plain record classes passed between the clients and the sync pipeline:
- DocumentNode: one page of the source tree
- RootRef: a root document as listed by the source
- DestinationEnvelope: what gets written for one candidate
- UpsertFailure / RunResult: the outcome of a run
"""

from typing import Any, Dict, List, Optional

from doc_mirror.constants import ROOT_FAILURE_PREFIX
from doc_mirror.utils import parse_epoch_ms


class DocumentNode:
    """A node in the source document tree.

    `children` starts empty and is filled in by the TreeWalker. An
    unreachable subtree stays an empty list.
    """

    def __init__(self, id: str, title: str = "", body: str = "", parent_id: Optional[str] = None,
                 archived: bool = False, created_at: int = 0, updated_at: int = 0,
                 doc_id: Optional[str] = None, workspace_id: Optional[str] = None,
                 has_children: Optional[bool] = None, children: Optional[List["DocumentNode"]] = None):
        self.id = str(id)
        self.title = title or ""
        self.body = body or ""
        self.parent_id = parent_id
        self.archived = bool(archived)
        self.created_at = created_at
        self.updated_at = updated_at
        self.doc_id = doc_id
        self.workspace_id = workspace_id
        # None means "unknown", the walker will ask the source
        self.has_children = has_children
        self.children: List[DocumentNode] = children if children is not None else []

    @classmethod
    def from_api(cls, record: Dict[str, Any], doc_id: Optional[str] = None) -> "DocumentNode":
        """Build a node from a ClickUp page record.

        Nested `pages` in the record only tell us whether the page has
        subpages; their content is fetched separately.

        Raises:
            KeyError: if the record has no `id`
        """
        nested = record.get("pages")
        has_children = bool(nested) if nested is not None else record.get("has_children")
        return cls(
            id=record["id"],
            title=record.get("name") or record.get("title") or "",
            body=record.get("content") or "",
            parent_id=record.get("parent_page_id") or record.get("parent_id"),
            archived=bool(record.get("archived", False)),
            created_at=parse_epoch_ms(record.get("date_created")),
            updated_at=parse_epoch_ms(record.get("date_updated")),
            doc_id=record.get("doc_id") or doc_id,
            workspace_id=record.get("workspace_id"),
            has_children=has_children,
        )

    def walk(self):
        """Yield this node and its descendants, parent before children."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self):
        return f"DocumentNode(id={self.id!r}, title={self.title!r}, children={len(self.children)})"


class RootRef:
    """A root document returned by SourceClient.list_roots()."""

    def __init__(self, id: str, title: str = ""):
        self.id = str(id)
        self.title = title or ""

    def __eq__(self, other):
        return isinstance(other, RootRef) and (self.id, self.title) == (other.id, other.title)

    def __hash__(self):
        return hash((self.id, self.title))

    def __repr__(self):
        return f"RootRef(id={self.id!r}, title={self.title!r})"


class DestinationEnvelope:
    """Write-only representation of one candidate at the destination."""

    def __init__(self, document_id: str, text: str, source_url: str):
        self.document_id = document_id
        self.text = text
        self.source_url = source_url

    def to_payload(self) -> Dict[str, str]:
        return {"text": self.text, "source_url": self.source_url}

    def __eq__(self, other):
        return isinstance(other, DestinationEnvelope) and (
            (self.document_id, self.text, self.source_url)
            == (other.document_id, other.text, other.source_url)
        )

    def __repr__(self):
        return f"DestinationEnvelope(document_id={self.document_id!r})"


class UpsertFailure:
    """One recorded failure: a document id (or root marker) and its error."""

    def __init__(self, document_id: str, error: Any):
        self.document_id = document_id
        self.error = error

    @classmethod
    def for_root(cls, root_id: str, error: Any) -> "UpsertFailure":
        return cls(f"{ROOT_FAILURE_PREFIX}{root_id}", error)

    @property
    def is_root(self) -> bool:
        return self.document_id.startswith(ROOT_FAILURE_PREFIX)

    def __repr__(self):
        return f"UpsertFailure({self.document_id!r}, {str(self.error)!r})"


class RunResult:
    """Accumulated outcome of one orchestration pass. Never persisted."""

    def __init__(self):
        self.candidates: int = 0
        self.succeeded: int = 0
        self.failures: List[UpsertFailure] = []
        self.roots_processed: int = 0

    @property
    def skipped_roots(self) -> List[UpsertFailure]:
        return [f for f in self.failures if f.is_root]

    @property
    def failed(self) -> int:
        """Number of candidates whose upsert failed (root markers excluded)."""
        return len([f for f in self.failures if not f.is_root])

    @property
    def ok(self) -> bool:
        return not self.failures

    def record_success(self):
        self.succeeded += 1

    def record_failure(self, document_id: str, error: Any):
        self.failures.append(UpsertFailure(document_id, error))

    def record_root_failure(self, root_id: str, error: Any):
        self.failures.append(UpsertFailure.for_root(root_id, error))

    def merge(self, other: "RunResult") -> "RunResult":
        """Fold another (per-root) result into this one."""
        self.candidates += other.candidates
        self.succeeded += other.succeeded
        self.failures.extend(other.failures)
        self.roots_processed += other.roots_processed
        return self

    def __str__(self):
        if self.ok:
            return f"✅ 同步成功: {self.succeeded}/{self.candidates} 个文档"
        parts = [f"成功 {self.succeeded}/{self.candidates}"]
        if self.failed:
            parts.append(f"失败 {self.failed}")
        if self.skipped_roots:
            parts.append(f"跳过根文档 {len(self.skipped_roots)}")
        return f"⚠️ 部分同步: {', '.join(parts)}"
