"""
Root conftest.py for shared test fixtures and configuration.
This file provides common fixtures used across the test suite.
"""

import asyncio
import shutil
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

# Add project root to Python path for consistent imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vinotes import config
from vinotes.DB.local_store import LocalStore
from vinotes.DB.session_store import SessionStore
from vinotes.Notes.errors import AuthError, NetworkError
from vinotes.Remote.auth import TokenProvider
from vinotes.Remote.drive_models import RemoteFile, SharedFile
from vinotes.Remote.gateway import RemoteGateway


# ========== Path and Config Fixtures ==========

@pytest.fixture
def isolated_temp_dir():
    """Create an isolated temporary directory that's always cleaned up."""
    temp_dir = tempfile.mkdtemp(prefix="vinotes_test_")
    temp_path = Path(temp_dir)
    yield temp_path
    if temp_path.exists():
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_config(isolated_temp_dir, monkeypatch):
    """Point the configuration at a throwaway file so tests never touch ~/.config."""
    config_path = isolated_temp_dir / "config" / "config.toml"
    monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", config_path)
    config.reset_config_cache()
    yield config_path
    config.reset_config_cache()


@pytest.fixture
def data_dir(isolated_temp_dir):
    path = isolated_temp_dir / "data"
    path.mkdir()
    return path


@pytest.fixture
def store(data_dir):
    return LocalStore(data_dir)


@pytest.fixture
def session_store(data_dir):
    return SessionStore(data_dir)


@pytest.fixture
def token_provider(session_store):
    """Token provider with a valid persisted session."""
    session_store.save("test-access-token-1234", 3600)
    return TokenProvider(session_store)


@pytest.fixture
def signed_out_provider(session_store):
    """Token provider with no session and no authorizer."""
    return TokenProvider(session_store)


# ========== Remote Fixtures ==========

class FakeGateway(RemoteGateway):
    """
    In-memory remote store.

    Failure injection: names in `fail_create` make create_file raise, ids in
    `fail_content` make get_file_content raise, ids in `fail_update` make
    update_file_content raise, and the `fail_*` flags make the
    matching operation raise NetworkError.
    """

    def __init__(self):
        self.access_token: Optional[str] = None
        self.folders: Dict[str, Dict] = {}
        self.files: Dict[str, Dict] = {}
        self.shared: Dict[str, SharedFile] = {}
        self.public_files: List[str] = []
        self.deleted: List[str] = []
        self.calls: List[str] = []
        self.fail_create: Set[str] = set()
        self.fail_content: Set[str] = set()
        self.fail_update: Set[str] = set()
        self.fail_list = False
        self.fail_delete = False
        self.fail_folders = False
        self.fail_account = False
        self.account = "user@example.com"
        self.list_gate: Optional[asyncio.Event] = None
        self._counter = 0
        self._clock = datetime(2024, 6, 1, tzinfo=timezone.utc)

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}"

    def _check_token(self) -> None:
        if not self.access_token:
            raise AuthError("no token")

    def add_file(self, folder_id: str, name: str, body: str) -> str:
        """Place a file in the store as if another device had uploaded it."""
        file_id = self._next_id("file")
        self._clock += timedelta(seconds=1)
        self.files[file_id] = {"name": name, "folder_id": folder_id, "body": body,
                               "properties": {}, "created": self._clock}
        return file_id

    def set_access_token(self, access_token):
        self.access_token = access_token

    @property
    def has_token(self):
        return bool(self.access_token)

    async def list_files(self, folder_id):
        self.calls.append("list_files")
        self._check_token()
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.fail_list:
            raise NetworkError("listing failed", status_code=500)
        return [
            RemoteFile(id=file_id, name=f["name"], created_time=f["created"])
            for file_id, f in self.files.items()
            if f["folder_id"] == folder_id
        ]

    async def get_file_content(self, file_id):
        self.calls.append(f"get:{file_id}")
        self._check_token()
        if file_id in self.fail_content:
            raise NetworkError(f"download of {file_id} failed", status_code=503)
        return self.files[file_id]["body"]

    async def create_file(self, folder_id, name, body, metadata=None):
        self.calls.append(f"create:{name}")
        self._check_token()
        if name in self.fail_create:
            raise NetworkError(f"upload of {name} failed", status_code=500)
        file_id = self.add_file(folder_id, name, body)
        self.files[file_id]["properties"] = dict(metadata or {})
        return file_id

    async def update_file_content(self, file_id, body):
        self.calls.append(f"update:{file_id}")
        self._check_token()
        if file_id in self.fail_update:
            raise NetworkError(f"update of {file_id} failed", status_code=500)
        if file_id not in self.files:
            raise NetworkError(f"no file {file_id}", status_code=404)
        self.files[file_id]["body"] = body

    async def delete_file(self, file_id):
        self.calls.append(f"delete:{file_id}")
        self._check_token()
        if self.fail_delete:
            raise NetworkError("delete failed", status_code=500)
        self.files.pop(file_id, None)
        self.deleted.append(file_id)

    async def get_or_create_folder(self, name, parent_id=None):
        self.calls.append(f"folder:{name}")
        self._check_token()
        if self.fail_folders:
            raise NetworkError("folder lookup failed", status_code=500)
        for folder_id, folder in self.folders.items():
            if folder["name"] == name and folder["parent"] == parent_id:
                return folder_id
        folder_id = self._next_id("folder")
        self.folders[folder_id] = {"name": name, "parent": parent_id}
        return folder_id

    async def get_account_label(self):
        self._check_token()
        if self.fail_account:
            raise NetworkError("about failed", status_code=500)
        return self.account

    async def share_file(self, file_id):
        self._check_token()
        self.public_files.append(file_id)

    async def upload_attachment(self, folder_id, name, data, mime_type):
        self._check_token()
        file_id = self.add_file(folder_id, name, data.decode("utf-8", errors="replace"))
        return RemoteFile(id=file_id, name=name, webViewLink=f"https://drive.test/{file_id}/view")

    async def fetch_shared_file(self, file_id):
        if file_id not in self.shared:
            raise NetworkError(f"no shared file {file_id}", status_code=404)
        return self.shared[file_id]


@pytest.fixture
def fake_gateway():
    return FakeGateway()
