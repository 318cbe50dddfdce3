from pathlib import Path
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from functools import lru_cache

DRIVE_SCOPE = "https://www.googleapis.com/auth/drive"


class Settings(BaseSettings):
    """
    Centralized application configuration with type validation.
    Automatically reads variables from the environment and the .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    LOG_LEVEL: str = "INFO"

    # --- Google Drive credentials (one of the two sources is required) ---
    # Path to a service-account key file.
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None
    # Authorized-user client secrets and token, as JSON strings.
    GDRIVE_CREDENTIALS_JSON: Optional[str] = None
    GDRIVE_TOKEN_JSON: Optional[str] = None
    GDRIVE_SCOPES: List[str] = [DRIVE_SCOPE]

    # --- Google Drive Settings ---
    # "root" is Drive's alias for the top of My Drive.
    GOOGLE_DRIVE_ROOT_FOLDER_ID: str = "root"

    # --- Constants and Computed Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent
    UPLOAD_STAGING_DIR: Optional[Path] = None

    @model_validator(mode="after")
    def check_credential_source(self):
        has_key_file = bool(
            self.GOOGLE_APPLICATION_CREDENTIALS
            and self.GOOGLE_APPLICATION_CREDENTIALS.strip()
        )
        has_user_token = bool(self.GDRIVE_CREDENTIALS_JSON and self.GDRIVE_TOKEN_JSON)
        if not has_key_file and not has_user_token:
            raise ValueError(
                "Google Drive credentials not configured. Set GOOGLE_APPLICATION_CREDENTIALS, "
                "or both GDRIVE_CREDENTIALS_JSON and GDRIVE_TOKEN_JSON."
            )
        if not self.GOOGLE_DRIVE_ROOT_FOLDER_ID.strip():
            raise ValueError("GOOGLE_DRIVE_ROOT_FOLDER_ID cannot be empty.")
        return self

    @property
    def STAGING_DIR(self) -> Path:
        return self.UPLOAD_STAGING_DIR or self.BASE_DIR / "uploads_tmp"

    @property
    def LOG_FILE(self) -> Path:
        return self.BASE_DIR / "app.log"


@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached instance of the application settings.
    The first call to this function will initialize the settings.
    """
    settings = Settings()
    settings.STAGING_DIR.mkdir(parents=True, exist_ok=True)
    return settings
