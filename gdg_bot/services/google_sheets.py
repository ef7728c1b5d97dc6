"""Google Sheets v4 adapter for the community knowledge spreadsheet.

The spreadsheet has one tab per dataset, each with a header row:

  * ``FAQs``       Category | Question | Answer | Tags
  * ``Speakers``   Name | Bio | Expertise | Contact | Events | Social
  * ``Resources``  Category | Title | Description | Link | Type
  * ``Feedback``   EventID | Rating | Comments | Date | Attendee
"""

from __future__ import annotations

import logging
import threading
from urllib.parse import quote

from gdg_bot.config import GOOGLE_SHEET_ID, GOOGLE_SHEETS_BASE_URL
from gdg_bot.services.cache import TTLCache
from gdg_bot.services.google_api import GoogleAPIClient, GoogleAPIError
from gdg_bot.services.google_auth import GoogleAuth

logger = logging.getLogger(__name__)

VALUES_TTL_SECONDS = 300.0


def rows_to_records(rows: list[list[str]]) -> list[dict[str, str]]:
    """Map data rows to dicts keyed by the lower-cased header row.

    Short rows (Sheets drops trailing empty cells) are padded with ``""``.
    """
    if not rows:
        return []
    headers = [h.strip().lower() for h in rows[0]]
    return [
        {header: (row[i] if i < len(row) else "") for i, header in enumerate(headers)}
        for row in rows[1:]
    ]


class GoogleSheetsClient(GoogleAPIClient):
    """Read-only access to one spreadsheet."""

    service_name = "google_sheets"

    def __init__(
        self,
        spreadsheet_id: str | None = None,
        *,
        auth: GoogleAuth | None = None,
        cache: TTLCache | None = None,
        base_url: str | None = None,
    ) -> None:
        super().__init__(base_url or GOOGLE_SHEETS_BASE_URL, auth=auth, cache=cache)
        self._spreadsheet_id = spreadsheet_id if spreadsheet_id is not None else GOOGLE_SHEET_ID

    def _path(self) -> str:
        if not self._spreadsheet_id:
            raise GoogleAPIError("GOOGLE_SHEET_ID is not configured")
        return f"/spreadsheets/{quote(self._spreadsheet_id, safe='')}"

    def get_values(self, cell_range: str) -> list[list[str]]:
        """Return the raw cell values of *cell_range* (A1 notation, e.g. ``FAQs!A:D``)."""
        cache_key = f"values:{cell_range}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        data = self._get(
            f"{self._path()}/values/{quote(cell_range, safe='')}",
            operation="values.get",
        )
        rows = data.get("values", [])
        self._cache.put(cache_key, rows, ttl_seconds=VALUES_TTL_SECONDS)
        return rows

    def get_records(self, cell_range: str) -> list[dict[str, str]]:
        """Rows of *cell_range* as header-keyed dicts."""
        return rows_to_records(self.get_values(cell_range))


_client: GoogleSheetsClient | None = None
_client_lock = threading.Lock()


def get_sheets_client() -> GoogleSheetsClient:
    """Return the process-wide sheets client, created on first use."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = GoogleSheetsClient()
    return _client


def close_sheets_client() -> None:
    """Close and forget the process-wide sheets client, if one was created."""
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
            _client = None
