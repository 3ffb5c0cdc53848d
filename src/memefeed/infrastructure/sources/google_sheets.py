"""URL source backed by the Google Sheets v4 API."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiError

from ...config import SHEETS_APPLICATION_NAME, SHEETS_READONLY_SCOPE
from ...errors import PageFetchError, SourceUnavailableError
from ...utils.urls import clean_cell

LOGGER = logging.getLogger(__name__)


class GoogleSheetsUrlSource:
    """Read image URLs from the first column of a spreadsheet range.

    The Google client is blocking, so every request runs in a worker thread
    and the coroutine resumes on the caller's event loop once it returns.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        credentials_path: Optional[Path] = None,
        *,
        application_name: str = SHEETS_APPLICATION_NAME,
        service: Any = None,
    ) -> None:
        if not spreadsheet_id:
            raise SourceUnavailableError("SpreadsheetId is not set.")
        self._spreadsheet_id = spreadsheet_id
        self._credentials_path = credentials_path
        self._application_name = application_name
        self._service = service

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    @property
    def is_connected(self) -> bool:
        return self._service is not None

    def connect(self) -> None:
        """Load the service-account credentials and build the Sheets service."""

        if self._service is not None:
            return
        path = self._credentials_path
        if path is None:
            raise SourceUnavailableError("CredentialsFilePath is not set.")
        if not path.is_file():
            raise SourceUnavailableError(f"Credentials file not found at path: {path}")
        LOGGER.info("Initializing Google Sheets service for %s...", self._application_name)
        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(path), scopes=[SHEETS_READONLY_SCOPE]
            )
        except (GoogleAuthError, ValueError, OSError) as exc:
            raise SourceUnavailableError(f"Error loading Google credentials: {exc}") from exc
        try:
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        except (GoogleApiError, GoogleAuthError, OSError) as exc:
            raise SourceUnavailableError(f"Google Sheets service failed to initialize: {exc}") from exc
        LOGGER.info("Google Sheets service initialized successfully.")

    async def fetch_page(self, range_spec: str) -> list[str]:
        self.connect()
        try:
            response = await asyncio.to_thread(self._get_values, range_spec)
        except (GoogleApiError, GoogleAuthError, OSError) as exc:
            raise PageFetchError(range_spec, str(exc)) from exc
        rows = response.get("values") or []
        return [clean_cell(row[0]) for row in rows if row]

    async def list_sheet_titles(self) -> list[str]:
        """Return the title of every sheet in the spreadsheet."""

        self.connect()
        try:
            response = await asyncio.to_thread(self._get_metadata)
        except (GoogleApiError, GoogleAuthError, OSError) as exc:
            raise SourceUnavailableError(f"Error fetching spreadsheet metadata: {exc}") from exc
        titles = [sheet.get("properties", {}).get("title", "") for sheet in response.get("sheets", [])]
        for title in titles:
            LOGGER.info("Sheet Name: %s", title)
        return titles

    # ------------------------------------------------------------------
    # Blocking client calls
    # ------------------------------------------------------------------
    def _get_values(self, range_spec: str) -> dict[str, Any]:
        request = self._service.spreadsheets().values().get(
            spreadsheetId=self._spreadsheet_id, range=range_spec
        )
        return request.execute()

    def _get_metadata(self) -> dict[str, Any]:
        request = self._service.spreadsheets().get(
            spreadsheetId=self._spreadsheet_id, fields="sheets.properties.title"
        )
        return request.execute()


__all__ = ["GoogleSheetsUrlSource"]
