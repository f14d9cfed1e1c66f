"""
SheetDB REST client
Thin list/create/update/delete wrapper around the spreadsheet API
"""
import logging
from typing import Dict, List, Optional

import requests

from bom_catalog.config import Config

logger = logging.getLogger(__name__)


class SheetDBError(Exception):
    """Failed SheetDB request. status_code is None for network failures."""

    def __init__(self, status_code: Optional[int], details: str = ""):
        self.status_code = status_code
        self.details = details
        if status_code is None:
            message = f"Network error: {details}"
        else:
            message = f"HTTP error! status: {status_code}, details: {details}"
        super().__init__(message)


class SheetDBClient:
    """Client for the SheetDB sheet holding the BOM records"""

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or Config.SHEETDB_URL or "").rstrip("/")
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        logger.info(f"SheetDB client initialized: {self.base_url}")

    def _request(self, method: str, url: str, payload: Optional[Dict] = None):
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise SheetDBError(None, str(e)) from e

        logger.debug(f"{method} {url} -> {response.status_code}")
        if not response.ok:
            raise SheetDBError(response.status_code, response.text)

        if not response.content:
            return None
        return response.json()

    def _row_url(self, record_id: str) -> str:
        return f"{self.base_url}/id/{record_id}"

    def list_all(self) -> List[Dict]:
        """Fetch every row of the sheet"""
        rows = self._request("GET", self.base_url)
        return rows or []

    def create(self, data: Dict) -> Dict:
        """Append one row; data must already carry its id"""
        return self._request("POST", self.base_url, {"data": data})

    def update(self, record_id: str, data: Dict) -> Dict:
        """Replace the columns of the row with the given id"""
        return self._request("PATCH", self._row_url(record_id), {"data": data})

    def delete(self, record_id: str) -> Dict:
        """Delete the row with the given id"""
        return self._request("DELETE", self._row_url(record_id))

    def close(self):
        """Close the HTTP session"""
        self.session.close()
