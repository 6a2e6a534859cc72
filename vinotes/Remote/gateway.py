# gateway.py
# Description: Contract of the remote file store used for note sync
#
# Imports
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
#
# Local Imports
from .drive_models import RemoteFile, SharedFile
#
########################################################################################################################
#
# Classes:

class RemoteGateway(ABC):
    """
    A hierarchical blob store reached over HTTP with bearer-token auth.

    Every method raises AuthError when the token is missing or rejected and
    NetworkError for any other failure, so callers can isolate failures per item.
    """

    @abstractmethod
    def set_access_token(self, access_token: Optional[str]) -> None:
        """Use `access_token` for subsequent requests."""

    @property
    @abstractmethod
    def has_token(self) -> bool:
        ...

    @abstractmethod
    async def list_files(self, folder_id: str) -> List[RemoteFile]:
        """Files directly inside `folder_id`, excluding trashed ones."""

    @abstractmethod
    async def get_file_content(self, file_id: str) -> str:
        ...

    @abstractmethod
    async def create_file(self, folder_id: str, name: str, body: str,
                          metadata: Optional[Dict[str, str]] = None) -> str:
        """Create a file and return its remote handle."""

    @abstractmethod
    async def update_file_content(self, file_id: str, body: str) -> None:
        ...

    @abstractmethod
    async def delete_file(self, file_id: str) -> None:
        ...

    @abstractmethod
    async def get_or_create_folder(self, name: str, parent_id: Optional[str] = None) -> str:
        """
        Find a folder by name (under `parent_id` when given) or create it.

        When several folders share the name, the first one in listing order wins.
        """

    @abstractmethod
    async def get_account_label(self) -> str:
        ...

    @abstractmethod
    async def share_file(self, file_id: str) -> None:
        """Grant anyone holding the link read access to the file."""

    @abstractmethod
    async def upload_attachment(self, folder_id: str, name: str, data: bytes,
                                mime_type: str) -> RemoteFile:
        """Upload an arbitrary file and return its listing entry, including its view link."""

    @abstractmethod
    async def fetch_shared_file(self, file_id: str) -> SharedFile:
        """Read a file through a share reference, without the user's token."""

    async def close(self) -> None:
        return None

#
# End of gateway.py
########################################################################################################################
