"""
ClickUp Docs source client (API v3).

Endpoints used:
- GET /workspaces/{ws}/docs                          list root documents
- GET /workspaces/{ws}/docs/{doc}/pages              top level pages of a doc
- GET /workspaces/{ws}/docs/{doc}/pages/{page}       one page, nested `pages` are its children
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from doc_mirror.clients.base import HttpClientBase, SourceClient, classify_response
from doc_mirror.constants import CLICKUP_API_BASE_URL, CLICKUP_APP_BASE_URL, CLICKUP_CONTENT_FORMAT, REQUEST_TIMEOUT
from doc_mirror.exceptions import NonRetryableFetchError
from doc_mirror.logger import logger
from doc_mirror.models import DocumentNode, RootRef


class ClickUpClient(HttpClientBase, SourceClient):
    """Reads a ClickUp workspace's Docs hierarchy."""

    name = "clickup"

    def __init__(self, api_key: str, workspace_id: str, base_url: str = CLICKUP_API_BASE_URL,
                 timeout: float = REQUEST_TIMEOUT, session: Optional[requests.Session] = None):
        super().__init__(
            base_url,
            headers={"Authorization": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            session=session,
        )
        self.workspace_id = str(workspace_id)

    def _workspace_path(self, *parts: str) -> str:
        return "/".join(["workspaces", quote(self.workspace_id, safe="")] + [quote(str(p), safe="") for p in parts])

    def list_roots(self) -> List[RootRef]:
        """List every Doc in the workspace, following cursor pagination."""
        roots: List[RootRef] = []
        cursor = None

        while True:
            params: Dict[str, Any] = {"limit": 100}
            if cursor:
                params["cursor"] = cursor
            response = self._send("GET", self._workspace_path("docs"), params=params)
            classify_response(response, "列出文档")
            data = self._json(response, "列出文档")

            try:
                for doc in data.get("docs") or []:
                    if doc.get("deleted") or doc.get("archived"):
                        continue
                    roots.append(RootRef(doc["id"], doc.get("name", "")))
                cursor = data.get("next_cursor")
            except (KeyError, TypeError, AttributeError) as e:
                raise NonRetryableFetchError(f"文档列表的响应格式无法识别: {e}") from e

            if not cursor:
                break

        logger.debug(f"ClickUp 工作区 {self.workspace_id} 共 {len(roots)} 个文档")
        return roots

    def list_children(self, node_id: str, max_depth: int = 1, content_format: str = CLICKUP_CONTENT_FORMAT,
                      doc_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"max_page_depth": max_depth, "content_format": content_format}

        if doc_id is None or doc_id == node_id:
            what = f"文档 {node_id} 的页面"
            response = self._send("GET", self._workspace_path("docs", node_id, "pages"), params=params)
            classify_response(response, what)
            data = self._json(response, what)
            pages = data.get("pages", []) if isinstance(data, dict) else data
        else:
            what = f"页面 {node_id} 的子页面"
            response = self._send("GET", self._workspace_path("docs", doc_id, "pages", node_id), params=params)
            classify_response(response, what)
            data = self._json(response, what)
            pages = (data.get("pages") or []) if isinstance(data, dict) else []

        if not isinstance(pages, list):
            raise NonRetryableFetchError(f"{what} 的响应格式无法识别")

        logger.debug(f"获取到 {len(pages)} 个页面 ({what})")
        return pages

    def page_url(self, node: DocumentNode) -> str:
        workspace_id = node.workspace_id or self.workspace_id
        return f"{CLICKUP_APP_BASE_URL}/{workspace_id}/v/dc/{node.doc_id}/{node.id}"

    def ping(self) -> int:
        """Cheap authenticated call used by the health check. Returns the HTTP status."""
        response = self._send("GET", self._workspace_path("docs"), params={"limit": 1})
        return response.status_code
