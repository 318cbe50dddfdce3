from .exceptions import GatewayError, ProviderError, ValidationError
from .gdrive import GoogleDriveGateway
from .staging import UploadPayload, stage_file
from .storage.dto import (
    BulkUploadReport,
    FailedUpload,
    NodeKind,
    PaginationPage,
    RemoteNode,
)

__all__ = [
    "BulkUploadReport",
    "FailedUpload",
    "GatewayError",
    "GoogleDriveGateway",
    "NodeKind",
    "PaginationPage",
    "ProviderError",
    "RemoteNode",
    "UploadPayload",
    "ValidationError",
    "stage_file",
]
