"""Document store REST client with retry and rate limiting."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from wt_cli.core.constants import DEFAULT_DATABASE, RETRY_STATUS_CODES, STORE_BASE

logger = logging.getLogger(__name__)


class APIError(RuntimeError):
    """Raised for document store failures after retries."""


class DocumentStoreAPI:
    """Thin wrapper around a Firestore-compatible REST API."""

    def __init__(
        self,
        project_id: str,
        api_key: Optional[str] = None,
        base_url: str = STORE_BASE,
        database: str = DEFAULT_DATABASE,
        rate_limit_delay: float = 0.0,
        max_retries: int = 3,
        timeout_seconds: int = 30,
    ) -> None:
        self.project_id = project_id
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.database = database
        self.rate_limit_delay = rate_limit_delay
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self._has_sent_request = False

    @property
    def documents_root(self) -> str:
        return f"/projects/{self.project_id}/databases/{self.database}/documents"

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        query = dict(params or {})
        if self.api_key:
            query["key"] = self.api_key
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                if self.rate_limit_delay > 0 and self._has_sent_request:
                    time.sleep(self.rate_limit_delay)

                self._has_sent_request = True
                logger.debug("%s %s (attempt %d)", method, path, attempt)
                response = requests.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=query or None,
                    json=json_data,
                    timeout=self.timeout_seconds,
                )
                if response.status_code in RETRY_STATUS_CODES:
                    raise requests.HTTPError(response.text, response=response)
                response.raise_for_status()

                if not response.text:
                    return {}
                return response.json()
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                if attempt >= self.max_retries:
                    break
                logger.warning("Request %s %s failed (%s), retrying", method, path, exc)
                time.sleep(min(2**attempt, 8))

        raise APIError(f"Document store request failed for {method} {path}: {last_error}")

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, payload: Dict[str, Any]) -> Any:
        return self._request("POST", path, json_data=payload)

    def patch(self, path: str, payload: Dict[str, Any]) -> Any:
        return self._request("PATCH", path, json_data=payload)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    def list_documents(self, collection: str, page_size: int = 300) -> List[Dict[str, Any]]:
        """Return every document of a collection, following page tokens."""
        documents: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"pageSize": page_size}
        while True:
            payload = self.get(f"{self.documents_root}/{collection}", params=params)
            documents.extend(payload.get("documents") or [])
            token = payload.get("nextPageToken")
            if not token:
                return documents
            params = {"pageSize": page_size, "pageToken": token}

    def get_document(self, collection: str, document_id: str) -> Dict[str, Any]:
        return self.get(f"{self.documents_root}/{collection}/{document_id}")

    def create_document(self, collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.post(f"{self.documents_root}/{collection}", {"fields": fields})

    def update_document(self, collection: str, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.patch(f"{self.documents_root}/{collection}/{document_id}", {"fields": fields})

    def delete_document(self, collection: str, document_id: str) -> Any:
        return self.delete(f"{self.documents_root}/{collection}/{document_id}")

    def run_query(self, structured_query: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Run a structured query and return the matched documents."""
        payload = self.post(f"{self.documents_root}:runQuery", {"structuredQuery": structured_query})
        if not isinstance(payload, list):
            return []
        return [row["document"] for row in payload if isinstance(row, dict) and row.get("document")]
