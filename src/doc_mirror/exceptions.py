"""
Exceptions Module

Error taxonomy shared by the clients and the sync pipeline.

    DocMirrorError
    ├── ConfigError
    ├── FetchError
    │   ├── TransientFetchError      (timeout, network, 5xx, 429 - retried)
    │   ├── NotFoundError            (404 - empty subtree, never retried)
    │   └── NonRetryableFetchError   (other 4xx, bad payload)
    ├── SubtreeUnavailable           (a node's children could not be fetched)
    └── UpsertError                  (any destination write failure)
"""

from typing import List, Optional


class DocMirrorError(Exception):
    """Base class for all doc-mirror errors."""


class ConfigError(DocMirrorError):
    """Raised when required settings are missing or invalid."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []


class FetchError(DocMirrorError):
    """Base class for errors raised by a SourceClient."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientFetchError(FetchError):
    """A fetch failure that may succeed on a later attempt."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 retry_after: Optional[float] = None):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class NotFoundError(FetchError):
    """The requested node does not exist (or has no subpages endpoint)."""

    def __init__(self, message: str = "not found", status_code: Optional[int] = 404):
        super().__init__(message, status_code=status_code)


class NonRetryableFetchError(FetchError):
    """A client error that no amount of retrying will fix."""


class SubtreeUnavailable(DocMirrorError):
    """The children of a node could not be fetched.

    Raised by the fetcher once retries are exhausted or a non-retryable
    error occurs. Carries the node id and the last underlying error.
    """

    def __init__(self, node_id: str, last_error: Optional[BaseException] = None):
        self.node_id = node_id
        self.last_error = last_error
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"subtree of {node_id} unavailable{detail}")


# Name used by callers that think in terms of a failed fetch
FetchFailure = SubtreeUnavailable


class UpsertError(DocMirrorError):
    """A destination write failed."""

    def __init__(self, document_id: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{document_id}: {message}")
        self.document_id = document_id
        self.status_code = status_code
