"""
Singleton Google Drive client with rate limiting using aiolimiter.
"""
import asyncio
import os
from typing import Any, Dict, List, Optional

from aiohttp import ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from loguru import logger

from src.config import (
    CONCURRENCY,
    DRIVE_API_URL,
    GOOGLE_ACCESS_TOKEN,
    GOOGLE_SCOPES,
    GOOGLE_SERVICE_ACCOUNT_FILE,
    REQUEST_TIMEOUT,
)
from src.models import DriveFile


class DriveAPIError(Exception):
    """Non-2xx response from the Drive REST API."""

    def __init__(self, status: int, message: str):
        super().__init__(f"Drive API error {status}: {message}")
        self.status = status
        self.message = message


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveClient:
    """
    Singleton Drive v3 client.
    Authenticates with a service account (or a raw OAuth access token) and
    uses AsyncLimiter to stay under the API's request rate.
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not DriveClient._initialized:
            self.base_url = DRIVE_API_URL
            self._credentials = None
            self._static_token = GOOGLE_ACCESS_TOKEN
            if not self._static_token:
                if not os.path.exists(GOOGLE_SERVICE_ACCOUNT_FILE):
                    raise ValueError(
                        "GOOGLE_ACCESS_TOKEN or a service account file at "
                        f"{GOOGLE_SERVICE_ACCOUNT_FILE} must be configured"
                    )
                self._credentials = service_account.Credentials.from_service_account_file(
                    GOOGLE_SERVICE_ACCOUNT_FILE, scopes=GOOGLE_SCOPES
                )
            self.rate_limiter = AsyncLimiter(max_rate=CONCURRENCY, time_period=1.0)
            self._session: Optional[ClientSession] = None
            DriveClient._initialized = True
            logger.debug("✅ Drive client initialized")

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=REQUEST_TIMEOUT))
        return self._session

    async def _token(self) -> str:
        if self._static_token:
            return self._static_token
        if not self._credentials.valid:
            # google-auth refreshes synchronously
            await asyncio.to_thread(self._credentials.refresh, Request())
        return self._credentials.token

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        response_type: str = "json",
    ) -> Any:
        """
        Send a request to the Drive API.

        Args:
            method: HTTP method.
            path: Path below the API base URL, e.g. "/files".
            params: Query string parameters.
            body: JSON request body.
            response_type: "json", "text" or "bytes".

        Returns:
            The decoded response body.

        Raises:
            DriveAPIError: On any non-2xx response.
        """
        async with self.rate_limiter:
            session = await self._get_session()
            headers = {"Authorization": f"Bearer {await self._token()}"}
            async with session.request(
                method, self.base_url + path, params=params, json=body, headers=headers
            ) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise DriveAPIError(resp.status, text[:500])
                if response_type == "bytes":
                    return await resp.read()
                if response_type == "text":
                    return await resp.text()
                return await resp.json()

    async def test_connection(self) -> bool:
        """Cheap list call to confirm the credentials work."""
        try:
            await self._request("GET", "/files", params={"pageSize": 1})
            return True
        except Exception as e:
            logger.error(f"❌ Drive connection test failed: {e}")
            return False

    async def search_files(
        self,
        query: Optional[str] = None,
        mime_type: Optional[str] = None,
        folder_id: Optional[str] = None,
        max_results: int = 10,
    ) -> List[DriveFile]:
        """
        List files matching a name substring, MIME type and/or parent folder.

        Returns:
            Files in the order the API lists them.
        """
        conditions = ["trashed = false"]
        if query:
            conditions.append(f"name contains '{_quote(query)}'")
        if mime_type:
            conditions.append(f"mimeType = '{_quote(mime_type)}'")
        if folder_id:
            conditions.append(f"'{_quote(folder_id)}' in parents")

        data = await self._request(
            "GET",
            "/files",
            params={
                "q": " and ".join(conditions),
                "pageSize": max_results,
                "fields": "files(id, name, mimeType, parents)",
            },
        )
        return [DriveFile.from_api(item) for item in data.get("files", [])]

    async def get_file_metadata(self, file_id: str) -> Dict[str, Any]:
        return await self._request(
            "GET", f"/files/{file_id}", params={"fields": "id, name, mimeType, size"}
        )

    async def get_file_bytes(self, file_id: str) -> bytes:
        return await self._request(
            "GET", f"/files/{file_id}", params={"alt": "media"}, response_type="bytes"
        )

    async def export_sheet_as_csv(self, file_id: str) -> str:
        """Export the first sheet of a native spreadsheet as CSV text."""
        return await self._request(
            "GET", f"/files/{file_id}/export", params={"mimeType": "text/csv"}, response_type="text"
        )

    async def get_file_permissions(self, file_id: str) -> List[Dict[str, Any]]:
        try:
            data = await self._request(
                "GET",
                f"/files/{file_id}/permissions",
                params={"fields": "permissions(id,type,role,emailAddress)"},
            )
            return data.get("permissions", [])
        except Exception as e:
            logger.warning(f"❌ Could not get permissions for {file_id}: {e}")
            return []

    async def is_file_public(self, file_id: str) -> bool:
        permissions = await self.get_file_permissions(file_id)
        return any(p.get("type") == "anyone" and p.get("role") == "reader" for p in permissions)

    async def make_file_public(self, file_id: str) -> bool:
        """Grant anyone-with-the-link read access. Returns False on failure."""
        try:
            await self._request(
                "POST",
                f"/files/{file_id}/permissions",
                body={"role": "reader", "type": "anyone"},
            )
            logger.debug(f"🔓 Made file {file_id} public")
            return True
        except Exception as e:
            logger.warning(f"⚠️ Could not make file {file_id} public: {e}")
            return False

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
