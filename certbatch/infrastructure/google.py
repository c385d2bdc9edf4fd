"""Integration with the Google Sheets, Drive and Slides REST APIs."""
from __future__ import annotations

import threading
import time
from typing import Any, Mapping
from urllib.parse import quote

import httpx

TOKEN_URL = "https://oauth2.googleapis.com/token"
SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
DRIVE_API = "https://www.googleapis.com/drive/v3/files"
SLIDES_API = "https://slides.googleapis.com/v1/presentations"
PDF_MIME_TYPE = "application/pdf"


class GoogleAPIError(RuntimeError):
    """Raised when a Google API call returns an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GoogleWorkspaceClient:
    """Minimal client for the spreadsheet, template copy and export calls."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        *,
        timeout: float = 30.0,
        token_url: str = TOKEN_URL,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._token_url = token_url
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None
        self._access_token: str | None = None
        self._expires_at = 0.0
        self._token_lock = threading.Lock()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _fetch_token(self) -> str:
        if not (self._client_id and self._client_secret and self._refresh_token):
            raise GoogleAPIError("Google OAuth credentials are not configured")

        response = self._client.post(
            self._token_url,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "refresh_token": self._refresh_token,
                "grant_type": "refresh_token",
            },
        )
        if response.status_code != 200:
            raise GoogleAPIError(
                f"token refresh failed: {self._error_message(response)}",
                status_code=response.status_code,
            )
        payload = response.json()
        token = payload.get("access_token")
        if not token:
            raise GoogleAPIError("token refresh returned no access_token")
        # treat the token as expired one minute before Google does
        self._expires_at = time.monotonic() + float(payload.get("expires_in", 3600)) - 60
        self._access_token = str(token)
        return self._access_token

    def _token(self) -> str:
        with self._token_lock:
            if self._access_token is None or time.monotonic() >= self._expires_at:
                return self._fetch_token()
            return self._access_token

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            return str(error.get("message") or error.get("status") or response.status_code)
        if error:
            return str(payload.get("error_description") or error)
        return f"HTTP {response.status_code}"

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._token()}"}
        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise GoogleAPIError(f"{method} {url} failed: {exc}") from exc
        if response.is_error:
            raise GoogleAPIError(
                f"{method} {url} returned {self._error_message(response)}",
                status_code=response.status_code,
            )
        return response

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def get_values(self, spreadsheet_id: str, cell_range: str) -> list[list[Any]]:
        url = f"{SHEETS_API}/{quote(spreadsheet_id, safe='')}/values/{quote(cell_range, safe='')}"
        payload = self._request("GET", url).json()
        return payload.get("values") or []

    def copy_file(self, file_id: str, name: str, folder_id: str | None = None) -> str:
        body: dict[str, Any] = {"name": name}
        if folder_id:
            body["parents"] = [folder_id]
        response = self._request(
            "POST",
            f"{DRIVE_API}/{file_id}/copy",
            params={"supportsAllDrives": "true"},
            json=body,
        )
        copy_id = response.json().get("id")
        if not copy_id:
            raise GoogleAPIError(f"copy of {file_id} returned no id")
        return str(copy_id)

    def replace_text(self, presentation_id: str, replacements: Mapping[str, str]) -> None:
        requests = [
            {
                "replaceAllText": {
                    "containsText": {"text": token, "matchCase": True},
                    "replaceText": value,
                }
            }
            for token, value in replacements.items()
        ]
        self._request(
            "POST",
            f"{SLIDES_API}/{presentation_id}:batchUpdate",
            json={"requests": requests},
        )

    def export_pdf(self, file_id: str) -> bytes:
        response = self._request(
            "GET",
            f"{DRIVE_API}/{file_id}/export",
            params={"mimeType": PDF_MIME_TYPE},
        )
        return response.content

    def trash_file(self, file_id: str) -> None:
        self._request(
            "PATCH",
            f"{DRIVE_API}/{file_id}",
            params={"supportsAllDrives": "true"},
            json={"trashed": True},
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


__all__ = ["GoogleAPIError", "GoogleWorkspaceClient", "PDF_MIME_TYPE"]
