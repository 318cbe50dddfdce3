# gdrive.py
import logging
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from typing import Any, Dict, Iterator, List, Optional, Sequence

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
from pydantic import ValidationError as PydanticValidationError

from .exceptions import GatewayError, ProviderError, ValidationError
from .staging import UploadPayload
from .storage.base import StorageGateway
from .storage.dto import (
    FOLDER_MIME_TYPE,
    BulkUploadReport,
    FailedUpload,
    PaginationPage,
    RemoteNode,
)

DEFAULT_ROOT_FOLDER_ID = "root"
DEFAULT_PAGE_SIZE = 100
DEFAULT_ORDER_BY = "folder,name"

NODE_FIELDS = (
    "id, name, mimeType, createdTime, modifiedTime, parents, "
    "webViewLink, webContentLink, iconLink, size"
)
LIST_FIELDS = f"nextPageToken, files({NODE_FIELDS})"

# Everything the Drive client can raise for a failed round trip.
PROVIDER_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


def _quote(value: str) -> str:
    """Escapes a value for use inside a single-quoted Drive query literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveGateway(StorageGateway):
    """
    Gateway to the Google Drive v3 API, implementing the StorageGateway interface.

    The Drive service is built and authenticated by the caller and shared by
    every operation, including the worker threads of a bulk upload, so it must
    be safe for concurrent use (see gdrive_auth.build_drive_service).
    """

    def __init__(self, service, root_folder_id: Optional[str] = None):
        self.service = service
        self.root_folder_id = root_folder_id or DEFAULT_ROOT_FOLDER_ID
        logging.info(
            f"Google Drive gateway initialized with root folder ID '{self.root_folder_id}'."
        )

    def _resolve_parent(self, parent_id: Optional[str]) -> str:
        return parent_id or self.root_folder_id

    def _provider_error(
        self,
        error: Exception,
        message: str,
        not_found_message: Optional[str] = None,
    ) -> ProviderError:
        """
        Logs the provider's error and returns the ProviderError to raise in its place.
        The caller only ever sees `message`; the original stays in the log and in __cause__.
        """
        status = error.resp.status if isinstance(error, HttpError) else None
        not_found = status == 404
        if not_found and not_found_message:
            message = not_found_message
        logging.error(f"{message} Cause: {error}")
        return ProviderError(message, status=status, not_found=not_found)

    def _to_node(self, item: Dict[str, Any], message: str) -> RemoteNode:
        try:
            return RemoteNode.from_api(item)
        except (KeyError, TypeError, ValueError, PydanticValidationError) as e:
            raise self._provider_error(e, message) from e

    def list_files(
        self,
        parent_id: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        cursor: Optional[str] = None,
        order_by: Optional[str] = DEFAULT_ORDER_BY,
    ) -> PaginationPage:
        """
        Lists one page of the non-trashed direct children of a folder.
        The page is built only once the whole provider response has been parsed.
        """
        if page_size < 1:
            raise ValidationError("Page size must be a positive integer.")

        folder_id = self._resolve_parent(parent_id)
        request_params = {
            "q": f"'{_quote(folder_id)}' in parents and trashed = false",
            "fields": LIST_FIELDS,
            "orderBy": order_by or DEFAULT_ORDER_BY,
            "pageSize": page_size,
        }
        if cursor:
            request_params["pageToken"] = cursor

        message = f"Failed to list files in Google Drive folder ID '{folder_id}'."
        try:
            logging.info(f"Listing files in Google Drive folder ID: '{folder_id}'")
            response = self.service.files().list(**request_params).execute()
        except PROVIDER_ERRORS as e:
            raise self._provider_error(e, message) from e

        items = [self._to_node(item, message) for item in response.get("files", [])]
        return PaginationPage(
            items=items, next_cursor=response.get("nextPageToken") or None
        )

    def iter_files(
        self,
        parent_id: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        order_by: Optional[str] = DEFAULT_ORDER_BY,
    ) -> Iterator[RemoteNode]:
        """
        Yields every non-trashed child of a folder, following the listing cursor
        until the provider reports no further pages.
        """
        cursor = None
        while True:
            page = self.list_files(
                parent_id=parent_id,
                page_size=page_size,
                cursor=cursor,
                order_by=order_by,
            )
            yield from page.items
            if page.next_cursor is None:
                return
            logging.info("Found more files, continuing listing...")
            cursor = page.next_cursor

    def create_folder(self, name: str, parent_id: Optional[str] = None) -> RemoteNode:
        if not name or not name.strip():
            raise ValidationError("Folder name is required.")

        folder_id = self._resolve_parent(parent_id)
        folder_metadata = {
            "name": name,
            "mimeType": FOLDER_MIME_TYPE,
            "parents": [folder_id],
        }
        message = f"Could not create folder '{name}' in Google Drive."
        try:
            folder = (
                self.service.files()
                .create(body=folder_metadata, fields=NODE_FIELDS)
                .execute()
            )
        except PROVIDER_ERRORS as e:
            raise self._provider_error(e, message) from e

        node = self._to_node(folder, message)
        logging.info(f"Created folder '{name}' with ID: {node.id}")
        return node

    def _validate_payload(self, payload: UploadPayload):
        if not payload.name or not payload.name.strip():
            raise ValidationError("File name is required.")
        if payload.content is not None and payload.staged_path is not None:
            raise ValidationError(
                f"File '{payload.name}' has both in-memory content and a staged file."
            )
        if payload.content is not None:
            size = len(payload.content)
        elif payload.staged_path is not None:
            if not payload.staged_path.is_file():
                raise ValidationError(f"Staged file for '{payload.name}' is missing.")
            size = payload.staged_path.stat().st_size
        else:
            raise ValidationError(f"No content provided for file '{payload.name}'.")
        if size == 0:
            raise ValidationError(f"File '{payload.name}' is empty.")

    def _upload_payload(self, payload: UploadPayload, folder_id: str) -> RemoteNode:
        """Validates and uploads one payload. Does not release the staged file."""
        self._validate_payload(payload)

        file_metadata = {"name": payload.name, "parents": [folder_id]}
        message = f"Failed to upload '{payload.name}' to Google Drive."
        try:
            with payload.open_stream() as stream:
                media = MediaIoBaseUpload(
                    stream, mimetype=payload.resolved_mime_type, resumable=False
                )
                logging.info(
                    f"Uploading {payload.name} ({payload.resolved_mime_type}) to folder ID {folder_id}..."
                )
                created = (
                    self.service.files()
                    .create(body=file_metadata, media_body=media, fields=NODE_FIELDS)
                    .execute()
                )
        except PROVIDER_ERRORS as e:
            raise self._provider_error(e, message) from e

        node = self._to_node(created, message)
        logging.info(f"Successfully uploaded {payload.name} to folder ID: {folder_id}.")
        return node

    def upload_file(
        self, payload: Optional[UploadPayload], parent_id: Optional[str] = None
    ) -> RemoteNode:
        if payload is None:
            raise ValidationError("No file provided for upload.")

        try:
            return self._upload_payload(payload, self._resolve_parent(parent_id))
        finally:
            payload.discard()

    def _settle_upload(
        self, payload: Optional[UploadPayload], folder_id: str
    ) -> RemoteNode | FailedUpload:
        """
        Runs one upload of a bulk call to a terminal state. Never raises: any
        failure becomes a FailedUpload naming the payload it belongs to.
        """
        file_name = (payload.name if payload is not None else "") or "<unnamed>"
        try:
            if payload is None:
                raise ValidationError("No file provided for upload.")
            return self._upload_payload(payload, folder_id)
        except GatewayError as e:
            logging.warning(f"Upload of '{file_name}' failed: {e}")
            return FailedUpload(file_name=file_name, error_message=str(e))
        except Exception as e:
            logging.error(
                f"Unexpected error while uploading '{file_name}': {e}", exc_info=True
            )
            return FailedUpload(
                file_name=file_name,
                error_message=f"Unexpected error during upload of '{file_name}'.",
            )
        finally:
            if payload is not None:
                payload.discard()

    def upload_bulk_files(
        self,
        payloads: Sequence[Optional[UploadPayload]],
        parent_id: Optional[str] = None,
    ) -> BulkUploadReport:
        """
        Uploads every payload on its own thread and waits for all of them to
        settle. A failing upload never cancels or delays its siblings; it is
        reported in `failed_uploads` instead of being raised.
        """
        payloads = list(payloads or [])
        if not payloads:
            raise ValidationError("No files provided for upload.")

        folder_id = self._resolve_parent(parent_id)
        # One slot per payload, written only by the thread that owns that index.
        outcomes: List[RemoteNode | FailedUpload | None] = [None] * len(payloads)

        def settle(index: int, payload: Optional[UploadPayload]):
            outcomes[index] = self._settle_upload(payload, folder_id)

        logging.info(
            f"Starting bulk upload of {len(payloads)} files to folder ID {folder_id}..."
        )
        with ThreadPoolExecutor(
            max_workers=len(payloads), thread_name_prefix="drive-upload"
        ) as executor:
            futures = [
                executor.submit(settle, index, payload)
                for index, payload in enumerate(payloads)
            ]
            wait(futures, return_when=ALL_COMPLETED)

        report = BulkUploadReport()
        for outcome in outcomes:
            if isinstance(outcome, RemoteNode):
                report.successful_uploads.append(outcome)
            else:
                report.failed_uploads.append(outcome)

        logging.info(
            f"Bulk upload finished: {len(report.successful_uploads)} succeeded, "
            f"{len(report.failed_uploads)} failed."
        )
        return report

    def get_file_metadata(self, file_id: str) -> RemoteNode:
        if not file_id:
            raise ValidationError("File ID is required.")

        message = f"Failed to get metadata for file ID '{file_id}' from Google Drive."
        try:
            item = (
                self.service.files().get(fileId=file_id, fields=NODE_FIELDS).execute()
            )
        except PROVIDER_ERRORS as e:
            raise self._provider_error(
                e,
                message,
                not_found_message=f"File with ID '{file_id}' not found in Google Drive.",
            ) from e
        return self._to_node(item, message)

    def delete_file(self, file_id: str):
        """
        Deletes a file or folder by its ID. A missing ID is a ProviderError,
        not a silent success.
        """
        if not file_id:
            raise ValidationError("File ID to delete is required.")

        try:
            logging.info(f"Deleting file with ID '{file_id}'...")
            self.service.files().delete(fileId=file_id).execute()
        except PROVIDER_ERRORS as e:
            raise self._provider_error(
                e,
                f"Failed to delete file or folder with ID '{file_id}' in Google Drive.",
                not_found_message=f"File with ID '{file_id}' not found in Google Drive.",
            ) from e
        logging.info(f"Deleted file with ID '{file_id}'.")
