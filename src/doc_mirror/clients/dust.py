"""
Dust data source destination client.

Documents are upserted with
    POST /w/{ws}/vaults/{vault}/data_sources/{ds}/documents/{document_id}
which overwrites by id, so repeating a write is harmless.
"""

from typing import Optional
from urllib.parse import quote

import requests

from doc_mirror.clients.base import DestinationClient, HttpClientBase
from doc_mirror.constants import DUST_API_BASE_URL, REQUEST_TIMEOUT
from doc_mirror.exceptions import FetchError, UpsertError
from doc_mirror.models import DestinationEnvelope


class DustClient(HttpClientBase, DestinationClient):
    """Writes documents into one Dust data source."""

    name = "dust"

    def __init__(self, api_key: str, workspace_id: str, vault_id: str, datasource_id: str,
                 base_url: str = DUST_API_BASE_URL, timeout: float = REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        super().__init__(
            base_url,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            timeout=timeout,
            session=session,
        )
        self.workspace_id = workspace_id
        self.vault_id = vault_id
        self.datasource_id = datasource_id

    @property
    def datasource_path(self) -> str:
        return (f"w/{quote(self.workspace_id, safe='')}/vaults/{quote(self.vault_id, safe='')}"
                f"/data_sources/{quote(self.datasource_id, safe='')}")

    def put_document(self, document_id: str, envelope: DestinationEnvelope) -> None:
        path = f"{self.datasource_path}/documents/{quote(document_id, safe='')}"
        try:
            response = self._send("POST", path, json=envelope.to_payload())
        except FetchError as e:
            raise UpsertError(document_id, str(e), status_code=e.status_code) from e

        if response.status_code >= 400:
            raise UpsertError(document_id, f"Dust 返回 {response.status_code}: {response.text[:200]}",
                              status_code=response.status_code)

    def ping(self) -> int:
        """Fetch the data source metadata; returns the HTTP status."""
        response = self._send("GET", self.datasource_path)
        return response.status_code
