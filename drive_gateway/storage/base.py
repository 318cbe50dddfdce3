# storage/base.py
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..staging import UploadPayload
from .dto import BulkUploadReport, PaginationPage, RemoteNode


class StorageGateway(ABC):
    """
    Abstract base class for a remote storage gateway.
    Defines the operation set that every provider-specific gateway
    (e.g., Google Drive) must implement. Omitted parent ids resolve to the
    gateway's configured root folder.
    """

    @abstractmethod
    def list_files(
        self,
        parent_id: Optional[str] = None,
        page_size: int = 100,
        cursor: Optional[str] = None,
        order_by: Optional[str] = None,
    ) -> PaginationPage:
        """
        Lists one page of the non-trashed direct children of a folder.

        :param parent_id: The ID of the folder to list.
        :param page_size: Upper bound on the number of items in the page.
        :param cursor: An opaque cursor from a previous page.
        :param order_by: A provider sort order, passed through unchanged.
        :return: A PaginationPage; `next_cursor` is None on the last page.
        """
        pass

    @abstractmethod
    def create_folder(self, name: str, parent_id: Optional[str] = None) -> RemoteNode:
        """
        Creates a folder. Same-named siblings are allowed.

        :param name: The folder name. Must not be empty.
        :param parent_id: The ID of the parent folder.
        """
        pass

    @abstractmethod
    def upload_file(
        self, payload: UploadPayload, parent_id: Optional[str] = None
    ) -> RemoteNode:
        """
        Uploads a single payload and releases its staged file on every exit path.

        :param payload: The payload to upload.
        :param parent_id: The ID of the destination folder.
        """
        pass

    @abstractmethod
    def upload_bulk_files(
        self, payloads: Sequence[UploadPayload], parent_id: Optional[str] = None
    ) -> BulkUploadReport:
        """
        Uploads every payload concurrently and waits for all of them to settle.
        Individual failures are reported in the result, never raised.

        :param payloads: The payloads to upload. Must not be empty.
        :param parent_id: The ID of the destination folder for all payloads.
        """
        pass

    @abstractmethod
    def get_file_metadata(self, file_id: str) -> RemoteNode:
        """
        Fetches the metadata of a file or folder.

        :param file_id: The ID of the node.
        """
        pass

    @abstractmethod
    def delete_file(self, file_id: str):
        """
        Deletes a file or folder. Folder descendants are handled by the provider.

        :param file_id: The ID of the node to delete.
        """
        pass
