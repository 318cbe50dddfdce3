import pytest
from unittest.mock import MagicMock
from pathlib import Path

from googleapiclient.errors import HttpError

from drive_gateway.config import Settings, get_settings
from drive_gateway.gdrive import GoogleDriveGateway


@pytest.fixture
def mock_settings(tmp_path):
    """
    Provides a mock of the application settings for testing.
    This avoids the need for environment variables during tests.
    """
    settings = MagicMock(spec=Settings)
    settings.LOG_LEVEL = "INFO"
    settings.GOOGLE_APPLICATION_CREDENTIALS = "/tmp/service-account.json"
    settings.GDRIVE_CREDENTIALS_JSON = None
    settings.GDRIVE_TOKEN_JSON = None
    settings.GDRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
    settings.GOOGLE_DRIVE_ROOT_FOLDER_ID = "root_folder_id"
    settings.BASE_DIR = Path("/tmp")
    settings.STAGING_DIR = tmp_path / "uploads_tmp"
    settings.LOG_FILE = tmp_path / "app.log"
    return settings


@pytest.fixture(autouse=True)
def patch_settings_class(monkeypatch, mock_settings):
    """
    Replaces the `Settings` constructor so that `get_settings()` returns
    `mock_settings` and no real settings are ever loaded.
    """
    get_settings.cache_clear()
    monkeypatch.setattr(
        "drive_gateway.config.Settings", lambda *args, **kwargs: mock_settings
    )
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_http_error():
    """Returns a factory for HttpErrors carrying the given HTTP status."""

    def _make(status: int, message: str = "error"):
        return HttpError(
            resp=MagicMock(status=status, reason=message),
            content=f'{{"error": {{"message": "{message}"}}}}'.encode(),
        )

    return _make


@pytest.fixture
def mock_service():
    """A fresh mock of the Drive v3 service for each test."""
    return MagicMock()


@pytest.fixture
def gateway(mock_service):
    """A gateway wired to the mock service, with the Drive root as default parent."""
    return GoogleDriveGateway(mock_service)


@pytest.fixture
def drive_file():
    """Returns a factory for Drive v3 `files` resources as the API returns them."""

    def _make(file_id: str, name: str, parent: str = "root", **extra) -> dict:
        item = {
            "id": file_id,
            "name": name,
            "mimeType": "text/plain",
            "parents": [parent],
        }
        item.update(extra)
        return item

    return _make
