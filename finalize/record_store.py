"""
Airtable record store — writes one estimate record per submission.

Talks to the Airtable REST API directly with urllib. Any HTTP error from
Airtable is raised as RecordStoreError carrying the response status code;
connection failures and timeouts carry no status code.
"""

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime, timezone
from typing import Optional

from .config import Settings
from .schemas import EstimateRequest, PricingResult

logger = logging.getLogger(__name__)

INITIAL_STATUS = "New"
DEFAULT_PLATFORM = "Not specified"


class RecordStoreError(Exception):
    """Record store rejected or failed a write."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AirtableClient:
    """Minimal Airtable client: create records in one table of one base."""

    def __init__(self, api_key: str, base_id: str,
                 api_url: str = "https://api.airtable.com", timeout: float = 30.0):
        self.api_key = api_key
        self.base_id = base_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "AirtableClient":
        return cls(
            api_key=settings.AIRTABLE_API_KEY,
            base_id=settings.AIRTABLE_BASE_ID,
            api_url=settings.AIRTABLE_API_URL,
            timeout=settings.AIRTABLE_TIMEOUT,
        )

    def table_url(self, table_name: str) -> str:
        return f"{self.api_url}/v0/{self.base_id}/{urllib.parse.quote(table_name, safe='')}"

    def create(self, table_name: str, fields: dict) -> dict:
        """Create a single record. Returns the created record as Airtable echoes it."""
        records = self.create_many(table_name, [fields])
        return records[0] if records else {}

    def create_many(self, table_name: str, records: list) -> list:
        payload = json.dumps({
            "records": [{"fields": fields} for fields in records],
        }).encode("utf-8")

        req = urllib.request.Request(
            self.table_url(table_name),
            data=payload,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                body = response.read()
        except urllib.error.HTTPError as e:
            raise RecordStoreError(_error_message(e), status_code=e.code) from e
        except (OSError, http.client.HTTPException) as e:
            raise RecordStoreError(f"Airtable connection failed: {e}") from e

        # A 2xx means the write happened, whatever the body looks like
        try:
            result = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            logger.warning("Airtable accepted the write but returned an unreadable body")
            return []
        if not isinstance(result, dict):
            logger.warning("Airtable accepted the write but returned %s", type(result).__name__)
            return []
        return result.get("records", [])


def _error_message(error: urllib.error.HTTPError) -> str:
    """Pull the message out of an Airtable error body, falling back to the HTTP reason."""
    try:
        body = json.loads(error.read().decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return f"HTTP {error.code}: {error.reason}"

    detail = body.get("error") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return detail.get("message") or detail.get("type") or f"HTTP {error.code}"
    if isinstance(detail, str):
        return detail
    return f"HTTP {error.code}: {error.reason}"


def build_record(request: EstimateRequest, pricing: PricingResult) -> dict:
    """
    Map a validated request + authoritative pricing onto the Airtable field names.
    Empty optional values are written as None so Airtable leaves the cell blank.
    """
    return {
        "App URL": request.app_url,
        "Email": request.email,
        "Platform": request.platform or DEFAULT_PLATFORM,
        "Selected Features": request.selected_features or None,
        "Selected Services": request.selected_services or None,
        "Custom Request": request.has_custom_request,
        "Custom Request Description": request.custom_request_text or None,
        "Notes": request.additional_context or None,
        "Estimated Price": pricing.total,
        "Feature Discount": pricing.discount,
        "Timestamp": request.timestamp or datetime.now(timezone.utc).isoformat(),
        "Status": INITIAL_STATUS,
    }
