"""Wire models for the Google Drive v3 responses the gateway consumes."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RemoteFile(BaseModel):
    """One entry of a file listing."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    created_time: Optional[datetime] = Field(default=None, alias="createdTime")
    web_view_link: Optional[str] = Field(default=None, alias="webViewLink")

    @property
    def created_at_millis(self) -> Optional[int]:
        if self.created_time is None:
            return None
        return int(self.created_time.timestamp() * 1000)


class RemoteFileList(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    files: List[RemoteFile] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")


class SharedFile(BaseModel):
    """A file read through a share reference, with the label of its owner."""
    file_id: str
    content: str
    owner_label: str = "Anonymous"
