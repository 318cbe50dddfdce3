# storage/dto.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class NodeKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"


class _ApiModel(BaseModel):
    """Serializes with camelCase keys, accepts snake_case field names on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RemoteNode(_ApiModel):
    """
    A file or folder known to the remote provider.

    Folders carry no mime type of their own; the reserved folder marker is
    folded into `kind`. `parent_ids` is passed through as the provider returns it.
    """

    id: str
    name: str
    kind: NodeKind
    mime_type: Optional[str] = None
    parent_ids: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    view_link: Optional[str] = None
    download_link: Optional[str] = None
    icon_link: Optional[str] = None
    size_bytes: Optional[int] = None

    @property
    def is_folder(self) -> bool:
        return self.kind is NodeKind.FOLDER

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "RemoteNode":
        """Builds a node from a Drive v3 `files` resource."""
        mime_type = item.get("mimeType")
        is_folder = mime_type == FOLDER_MIME_TYPE
        size = item.get("size")
        return cls(
            id=item["id"],
            name=item.get("name", ""),
            kind=NodeKind.FOLDER if is_folder else NodeKind.FILE,
            mime_type=None if is_folder else mime_type,
            parent_ids=list(item.get("parents") or []),
            created_at=item.get("createdTime"),
            modified_at=item.get("modifiedTime"),
            view_link=item.get("webViewLink"),
            download_link=item.get("webContentLink"),
            icon_link=item.get("iconLink"),
            size_bytes=int(size) if size is not None else None,
        )


class PaginationPage(_ApiModel):
    """One page of a listing. `next_cursor` is None once the listing is exhausted."""

    items: List[RemoteNode] = Field(default_factory=list)
    next_cursor: Optional[str] = None


class FailedUpload(_ApiModel):
    file_name: str
    error_message: str


class BulkUploadReport(_ApiModel):
    """
    Aggregated outcome of a bulk upload. Every input payload contributes
    exactly one entry, to one of the two lists.
    """

    successful_uploads: List[RemoteNode] = Field(default_factory=list)
    failed_uploads: List[FailedUpload] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successful_uploads) + len(self.failed_uploads)
