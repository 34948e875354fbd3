"""
Notion REST client
"""
import logging
from typing import Any, Dict, Iterator, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import get_config
from domain.exceptions import ConfigurationError, RecordStoreError

logger = logging.getLogger(__name__)


class NotionClient:
    """Thin wrapper over the Notion pages/databases endpoints"""

    def __init__(self, config=None, session: Optional[requests.Session] = None):
        self.config = config or get_config()
        self.base_url = self.config.NOTION_BASE_URL.rstrip("/")
        self.timeout = self.config.REQUEST_TIMEOUT

        if not self.config.NOTION_API_KEY:
            logger.warning("NOTION_API_KEY is not set; records service calls will fail")

        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {self.config.NOTION_API_KEY}',
            'Notion-Version': self.config.NOTION_VERSION,
            'Content-Type': 'application/json',
            'User-Agent': 'ClinicAPI/1.0',
        })
        # Retries cover idempotent methods only (GET/PUT/DELETE); POST and PATCH go out once
        retry = Retry(
            total=self.config.MAX_RETRIES,
            backoff_factor=1,
            status_forcelist=(429, 500, 502, 503, 504),
        )
        self.session.mount("https://", HTTPAdapter(max_retries=retry))

    def is_configured(self) -> bool:
        return bool(self.config.NOTION_API_KEY)

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> Dict[str, Any]:
        if not self.is_configured():
            raise ConfigurationError("Notion API key is not configured")

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Notion {method} {path} failed: {e}")
            raise RecordStoreError("Records service unreachable", str(e)) from e

        if not response.ok:
            try:
                details = response.json().get("message")
            except ValueError:
                details = response.text[:200]
            logger.error(f"Notion {method} {path} returned {response.status_code}: {details}")
            raise RecordStoreError(
                "Records service rejected the request",
                details,
                status_code=response.status_code,
            )

        return response.json()

    def query_database(
        self,
        database_id: str,
        filter: Optional[dict] = None,
        start_cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Single page of database query results"""
        body: Dict[str, Any] = {}
        if filter:
            body["filter"] = filter
        if start_cursor:
            body["start_cursor"] = start_cursor
        return self._request("POST", f"/databases/{database_id}/query", json=body)

    def iter_database(self, database_id: str, filter: Optional[dict] = None) -> Iterator[Dict[str, Any]]:
        """Yield every result of a query, following pagination"""
        cursor = None
        while True:
            response = self.query_database(database_id, filter=filter, start_cursor=cursor)
            yield from response.get("results", [])
            if not response.get("has_more"):
                break
            cursor = response.get("next_cursor")
            if not cursor:
                break

    def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/pages/{page_id}")

    def create_page(self, database_id: str, properties: dict) -> Dict[str, Any]:
        return self._request("POST", "/pages", json={
            "parent": {"database_id": database_id},
            "properties": properties,
        })

    def update_page(self, page_id: str, properties: Optional[dict] = None, archived: Optional[bool] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if properties is not None:
            body["properties"] = properties
        if archived is not None:
            body["archived"] = archived
        return self._request("PATCH", f"/pages/{page_id}", json=body)
