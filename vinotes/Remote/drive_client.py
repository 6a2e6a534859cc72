# vinotes/Remote/drive_client.py
# Description: Google Drive v3 binding of the remote gateway
#
# All note files live in one Drive folder; board folders and attachments get
# folders of their own. Requests carry the user's OAuth access token as a bearer
# token, except reads through a share reference, which use the API key.

from __future__ import annotations
from typing import Optional, List, Dict, Any
import asyncio
import json
import time

import httpx
from loguru import logger

from ..config import get_cli_setting
from ..Notes.errors import AuthError, NetworkError
from ..Utils.logging_config import mask_token
from .drive_models import RemoteFile, RemoteFileList, SharedFile
from .gateway import RemoteGateway

logger = logger.bind(module="drive_client")

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
NOTE_MIME_TYPE = "text/markdown"


def _quote(value: str) -> str:
    """Escape a value for use inside a Drive query string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveAPIClient(RemoteGateway):
    """Client for the Google Drive v3 REST API."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        api_base_url: Optional[str] = None,
        upload_base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Drive client.

        Args:
            access_token: OAuth access token; can be set later with set_access_token
            api_base_url: Metadata endpoint root, defaults to the [drive] config
            upload_base_url: Upload endpoint root, defaults to the [drive] config
            api_key: Key used for anonymous reads of shared files
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.access_token = access_token
        self.api_base_url = (api_base_url or get_cli_setting(
            "drive", "api_base_url", "https://www.googleapis.com/drive/v3")).rstrip("/")
        self.upload_base_url = (upload_base_url or get_cli_setting(
            "drive", "upload_base_url", "https://www.googleapis.com/upload/drive/v3")).rstrip("/")
        self.api_key = api_key if api_key is not None else get_cli_setting("drive", "api_key", "")
        self.timeout = timeout or float(get_cli_setting("drive", "timeout_seconds", 30.0))
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": "vinotes-sync"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def set_access_token(self, access_token: Optional[str]) -> None:
        self.access_token = access_token
        logger.debug(f"Drive client token set to {mask_token(access_token)}")

    @property
    def has_token(self) -> bool:
        return bool(self.access_token)

    async def _request(self, method: str, url: str, action: str,
                       authenticated: bool = True, **kwargs: Any) -> httpx.Response:
        """Send a request and translate failures into AuthError/NetworkError."""
        headers = dict(kwargs.pop("headers", None) or {})
        if authenticated:
            if not self.access_token:
                raise AuthError(f"Cannot {action}: not connected to Google Drive")
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                raise AuthError(f"Drive rejected the request to {action} (HTTP {status})") from e
            raise NetworkError(f"Failed to {action}: HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to {action}: {e}") from e

    @staticmethod
    def _json(response: httpx.Response, action: str) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Failed to {action}: response was not JSON") from e

    async def _query_files(self, query: str, fields: str, action: str) -> List[RemoteFile]:
        files: List[RemoteFile] = []
        page_token: Optional[str] = None
        while True:
            params = {"q": query, "fields": f"nextPageToken, files({fields})", "spaces": "drive"}
            if page_token:
                params["pageToken"] = page_token
            response = await self._request("GET", f"{self.api_base_url}/files", action, params=params)
            page = RemoteFileList.model_validate(self._json(response, action))
            files.extend(page.files)
            page_token = page.next_page_token
            if not page_token:
                return files

    async def list_files(self, folder_id: str) -> List[RemoteFile]:
        query = f"'{_quote(folder_id)}' in parents and trashed=false"
        files = await self._query_files(query, "id, name, createdTime", "list note files")
        logger.debug(f"Listed {len(files)} files in folder {folder_id}")
        return files

    async def get_file_content(self, file_id: str) -> str:
        response = await self._request(
            "GET", f"{self.api_base_url}/files/{file_id}", f"download file {file_id}",
            params={"alt": "media"},
        )
        return response.text

    async def create_file(self, folder_id: str, name: str, body: str,
                          metadata: Optional[Dict[str, str]] = None) -> str:
        file_metadata = {
            "name": name,
            "mimeType": NOTE_MIME_TYPE,
            "parents": [folder_id],
            "properties": metadata or {},
        }
        files = {
            "metadata": ("metadata.json", json.dumps(file_metadata), "application/json"),
            "file": (name, body.encode("utf-8"), NOTE_MIME_TYPE),
        }
        response = await self._request(
            "POST", f"{self.upload_base_url}/files", f"upload {name}",
            params={"uploadType": "multipart", "fields": "id"}, files=files,
        )
        file_id = self._json(response, f"upload {name}").get("id")
        if not file_id:
            raise NetworkError(f"Failed to upload {name}: no file id in response")
        return file_id

    async def update_file_content(self, file_id: str, body: str) -> None:
        await self._request(
            "PATCH", f"{self.upload_base_url}/files/{file_id}", f"update file {file_id}",
            params={"uploadType": "media"},
            content=body.encode("utf-8"),
            headers={"Content-Type": NOTE_MIME_TYPE},
        )

    async def delete_file(self, file_id: str) -> None:
        await self._request("DELETE", f"{self.api_base_url}/files/{file_id}", f"delete file {file_id}")

    async def get_or_create_folder(self, name: str, parent_id: Optional[str] = None) -> str:
        query = f"name = '{_quote(name)}' and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false"
        if parent_id:
            query += f" and '{_quote(parent_id)}' in parents"
        existing = await self._query_files(query, "id", f"look up folder {name}")
        if existing:
            return existing[0].id

        body: Dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if parent_id:
            body["parents"] = [parent_id]
        response = await self._request(
            "POST", f"{self.api_base_url}/files", f"create folder {name}",
            params={"fields": "id"}, json=body,
        )
        folder_id = self._json(response, f"create folder {name}").get("id")
        if not folder_id:
            raise NetworkError(f"Failed to create folder {name}: no folder id in response")
        logger.info(f"Created Drive folder '{name}'")
        return folder_id

    async def get_account_label(self) -> str:
        response = await self._request(
            "GET", f"{self.api_base_url}/about", "read account details",
            params={"fields": "user(emailAddress)"},
        )
        data = self._json(response, "read account details")
        email = (data.get("user") or {}).get("emailAddress")
        if not email:
            raise NetworkError("Failed to read account details: no email address returned")
        return email

    async def share_file(self, file_id: str) -> None:
        await self._request(
            "POST", f"{self.api_base_url}/files/{file_id}/permissions", f"share file {file_id}",
            json={"role": "reader", "type": "anyone"},
        )

    async def upload_attachment(self, folder_id: str, name: str, data: bytes,
                                mime_type: str) -> RemoteFile:
        files = {
            "metadata": ("metadata.json", json.dumps({"name": name, "parents": [folder_id]}), "application/json"),
            "file": (name, data, mime_type),
        }
        response = await self._request(
            "POST", f"{self.upload_base_url}/files", f"upload attachment {name}",
            params={"uploadType": "multipart", "fields": "id,name,webViewLink"}, files=files,
        )
        return RemoteFile.model_validate(self._json(response, f"upload attachment {name}"))

    async def fetch_shared_file(self, file_id: str) -> SharedFile:
        if not self.api_key:
            raise AuthError("Reading shared notes needs a Drive API key ([drive] api_key)")

        url = f"{self.api_base_url}/files/{file_id}"
        action = f"read shared note {file_id}"
        meta_task = self._request("GET", url, action, authenticated=False,
                                  params={"fields": "owners(emailAddress)", "key": self.api_key})
        # cache buster so a re-import sees the owner's latest upload
        content_task = self._request("GET", url, action, authenticated=False,
                                     params={"alt": "media", "key": self.api_key, "v": str(int(time.time() * 1000))})
        meta_result, content_result = await asyncio.gather(meta_task, content_task, return_exceptions=True)

        if isinstance(content_result, BaseException):
            raise content_result

        owner_label = "Anonymous"
        if isinstance(meta_result, BaseException):
            logger.warning(f"Could not read owner of shared note {file_id}: {meta_result}")
        else:
            owners = self._json(meta_result, action).get("owners") or []
            if owners and owners[0].get("emailAddress"):
                owner_label = owners[0]["emailAddress"]

        return SharedFile(file_id=file_id, content=content_result.text, owner_label=owner_label)
