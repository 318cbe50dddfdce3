# gdrive_auth.py
import json
import logging

import google_auth_httplib2
import httplib2
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import HttpRequest

from .config import Settings


def load_credentials(settings: Settings):
    """
    Builds Google credentials from the configured source.
    A service-account key file takes precedence over an authorized-user token.
    """
    scopes = settings.GDRIVE_SCOPES
    if settings.GOOGLE_APPLICATION_CREDENTIALS:
        logging.info(
            f"Loading service-account credentials from {settings.GOOGLE_APPLICATION_CREDENTIALS}"
        )
        return service_account.Credentials.from_service_account_file(
            settings.GOOGLE_APPLICATION_CREDENTIALS, scopes=scopes
        )

    token_info = json.loads(settings.GDRIVE_TOKEN_JSON)

    # The credentials JSON is a downloaded OAuth client file; the client
    # settings sit under "installed" or "web" depending on the client type.
    credentials_data = json.loads(settings.GDRIVE_CREDENTIALS_JSON)
    client_config = (
        credentials_data.get("installed")
        or credentials_data.get("web")
        or credentials_data
    )
    if "client_id" in client_config and "client_secret" in client_config:
        token_info = {
            **token_info,
            "client_id": client_config["client_id"],
            "client_secret": client_config["client_secret"],
        }
    else:
        logging.warning(
            "client_id or client_secret not found in GDRIVE_CREDENTIALS_JSON. Using existing from GDRIVE_TOKEN_JSON if available."
        )

    logging.info("Loading authorized-user credentials from GDRIVE_TOKEN_JSON")
    return Credentials.from_authorized_user_info(info=token_info, scopes=scopes)


def build_drive_service(credentials):
    """
    Builds the Drive v3 service used by the gateway.

    httplib2.Http is not thread-safe, so every request gets its own authorized
    Http object. This lets the bulk upload threads share one service.
    """

    def build_request(http, *args, **kwargs):
        new_http = google_auth_httplib2.AuthorizedHttp(
            credentials, http=httplib2.Http()
        )
        return HttpRequest(new_http, *args, **kwargs)

    authorized_http = google_auth_httplib2.AuthorizedHttp(
        credentials, http=httplib2.Http()
    )
    service = build(
        "drive",
        "v3",
        http=authorized_http,
        requestBuilder=build_request,
        cache_discovery=False,
    )
    logging.info("Google Drive service built successfully.")
    return service
