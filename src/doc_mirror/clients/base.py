"""
Base Client Module

Contains:
- SourceClient / DestinationClient: the capabilities the sync pipeline needs
- HttpClientBase: shared requests.Session handling and status classification
"""

from typing import Any, Dict, List, Optional

import requests

from doc_mirror.constants import REQUEST_TIMEOUT, RETRYABLE_STATUS_CODES
from doc_mirror.exceptions import NonRetryableFetchError, NotFoundError, TransientFetchError
from doc_mirror.logger import logger
from doc_mirror.models import DestinationEnvelope, DocumentNode, RootRef


class SourceClient:
    """Read access to the hierarchical source tree."""

    def list_roots(self) -> List[RootRef]:
        """List every root document of the configured collection."""
        raise NotImplementedError

    def list_children(self, node_id: str, max_depth: int = 1, content_format: str = "text/md",
                      doc_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return page records directly below `node_id`.

        Args:
            node_id: A root document id or a page id
            max_depth: How many levels the server should expand
            content_format: Body format requested from the server
            doc_id: Root document the page belongs to (None when node_id is a root)

        Raises:
            NotFoundError: the node does not exist
            TransientFetchError: timeout, network error, 5xx or rate limit
            NonRetryableFetchError: any other client error
        """
        raise NotImplementedError

    def page_url(self, node: DocumentNode) -> str:
        """Human-facing URL of a page, stored alongside the synced text."""
        raise NotImplementedError


class DestinationClient:
    """Write access to the flat destination store."""

    def put_document(self, document_id: str, envelope: DestinationEnvelope) -> None:
        """Create or overwrite the document keyed by `document_id`.

        Raises:
            UpsertError: on any failure
        """
        raise NotImplementedError


def parse_retry_after(response: requests.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def classify_response(response: requests.Response, what: str):
    """
    Raise the FetchError matching a non-2xx response.

    404 -> NotFoundError, 408/429/5xx -> TransientFetchError,
    other 4xx -> NonRetryableFetchError.
    """
    status = response.status_code
    if status < 400:
        return
    message = f"{what} 返回 {status}: {response.text[:200]}"
    if status == 404:
        raise NotFoundError(message)
    if status in RETRYABLE_STATUS_CODES or status >= 500:
        raise TransientFetchError(message, status_code=status, retry_after=parse_retry_after(response))
    raise NonRetryableFetchError(message, status_code=status)


class HttpClientBase:
    """requests.Session wrapper shared by the ClickUp and Dust clients."""

    name = "http"

    def __init__(self, base_url: str, headers: Dict[str, str], timeout: float = REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(headers)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Perform one HTTP request, mapping transport failures to FetchErrors.

        Raises:
            TransientFetchError: on timeout or connection failure
            NonRetryableFetchError: on any other requests error (bad URL, ...)
        """
        url = self._url(path)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.warning(f"[{self.name}] 请求超时: {url}")
            raise TransientFetchError(f"{method} {url} 超时: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise TransientFetchError(f"{method} {url} 网络错误: {e}") from e
        except requests.exceptions.RequestException as e:
            raise NonRetryableFetchError(f"{method} {url} 请求失败: {e}") from e

        logger.debug(f"[{self.name}] {method} {url} -> {response.status_code}")
        if response.status_code == 429:
            logger.warning(f"[{self.name}] 触发限流 (429): {url}")
        return response

    def _json(self, response: requests.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise NonRetryableFetchError(f"{what} 返回了无效的 JSON: {e}") from e

    def close(self):
        self.session.close()
