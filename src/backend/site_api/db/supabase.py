from typing import Any, Dict

import requests
from requests import RequestException

from site_api.config import Settings
from site_api.utils.logger import get_logger

logger = get_logger(__name__)


class RecordStoreError(RuntimeError):
    """Represents a failed write against the record store."""

    def __init__(self, table: str, status_code: int | None = None, detail: str | None = None):
        detail = detail or "Record store request failed without details."
        super().__init__(detail)
        self.table = table
        self.status_code = status_code
        self.detail = detail


def _rest_url(settings: Settings, table: str) -> str:
    base = settings.supabase_url.rstrip("/")
    return f"{base}/rest/v1/{table}"


def _auth_headers(settings: Settings) -> Dict[str, str]:
    key = settings.supabase_service_role
    return {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Content-Type": "application/json",
        "Prefer": "return=minimal",
    }


def insert_row(settings: Settings, table: str, row: Dict[str, Any]) -> None:
    """Insert a single row; raises RecordStoreError on any failure."""
    url = _rest_url(settings, table)
    try:
        response = requests.post(
            url,
            json=row,
            headers=_auth_headers(settings),
            timeout=settings.supabase_timeout,
        )
    except RequestException as exc:
        logger.warning("Network failure when inserting into %s: %s", table, exc)
        raise RecordStoreError(table, detail=str(exc)) from exc

    if not response.ok:
        detail = response.text.strip()
        logger.warning(
            "Record store insert into %s returned %s; detail=%s",
            table,
            response.status_code,
            detail,
        )
        raise RecordStoreError(table, response.status_code, detail)
