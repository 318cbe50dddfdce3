import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import Settings, get_settings
from .exceptions import ProviderError, ValidationError
from .gdrive import DEFAULT_ORDER_BY, DEFAULT_PAGE_SIZE, GoogleDriveGateway
from .gdrive_auth import build_drive_service, load_credentials
from .staging import stage_file


def setup_logging():
    """Configures logging to file and console explicitly."""
    settings = get_settings()
    log_level_name = settings.LOG_LEVEL.upper()

    # Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level_name)

    # Clear any existing handlers to prevent duplicate logs on re-runs or implicit configs
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Console output goes to stderr so stdout carries only command results
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    try:
        file_handler = logging.FileHandler(settings.LOG_FILE)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except IOError as e:
        root_logger.error(f"Failed to set up file logging to {settings.LOG_FILE}: {e}")

    # Reducing "noise" from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("google_auth_httplib2").setLevel(logging.WARNING)


def initialize_gateway(settings: Settings) -> Optional[GoogleDriveGateway]:
    """
    Builds the authenticated Drive service once and hands it to a new gateway.
    Returns None if the client could not be initialized.
    """
    try:
        credentials = load_credentials(settings)
        service = build_drive_service(credentials)
    except Exception as e:
        logging.error(
            f"Failed to initialize Google Drive client. Error: {e}", exc_info=True
        )
        return None
    return GoogleDriveGateway(service, root_folder_id=settings.GOOGLE_DRIVE_ROOT_FOLDER_ID)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drive-gateway",
        description="List, create, upload, inspect and delete Google Drive files.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List the children of a folder.")
    list_parser.add_argument("--parent", help="Folder ID. Defaults to the root folder.")
    list_parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE)
    list_parser.add_argument("--cursor", help="Cursor returned by a previous page.")
    list_parser.add_argument("--order-by", default=DEFAULT_ORDER_BY)
    list_parser.add_argument(
        "--all", action="store_true", help="Follow cursors until the listing is exhausted."
    )

    info_parser = subparsers.add_parser("info", help="Show the metadata of a file.")
    info_parser.add_argument("file_id")

    mkdir_parser = subparsers.add_parser("mkdir", help="Create a folder.")
    mkdir_parser.add_argument("name")
    mkdir_parser.add_argument("--parent")

    upload_parser = subparsers.add_parser(
        "upload", help="Upload one file, or several files concurrently."
    )
    upload_parser.add_argument("paths", nargs="+", type=Path)
    upload_parser.add_argument("--parent")
    upload_parser.add_argument(
        "--mime-type", help="Declared mime type. Guessed from the file name if omitted."
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a file or folder.")
    delete_parser.add_argument("file_id")

    return parser


def run_command(
    gateway: GoogleDriveGateway, args: argparse.Namespace, settings: Settings
) -> Optional[str]:
    """Executes one parsed command and returns the JSON to print, if any."""
    if args.command == "list":
        if args.all:
            nodes = gateway.iter_files(
                parent_id=args.parent, page_size=args.page_size, order_by=args.order_by
            )
            return json.dumps(
                [node.model_dump(mode="json", by_alias=True) for node in nodes],
                indent=2,
            )
        page = gateway.list_files(
            parent_id=args.parent,
            page_size=args.page_size,
            cursor=args.cursor,
            order_by=args.order_by,
        )
        return page.model_dump_json(by_alias=True, indent=2)

    if args.command == "info":
        return gateway.get_file_metadata(args.file_id).model_dump_json(
            by_alias=True, indent=2
        )

    if args.command == "mkdir":
        return gateway.create_folder(args.name, parent_id=args.parent).model_dump_json(
            by_alias=True, indent=2
        )

    if args.command == "upload":
        payloads = []
        try:
            for path in args.paths:
                payloads.append(
                    stage_file(path, settings.STAGING_DIR, mime_type=args.mime_type)
                )
        except OSError:
            for payload in payloads:
                payload.discard()
            raise
        if len(payloads) == 1:
            result = gateway.upload_file(payloads[0], parent_id=args.parent)
        else:
            result = gateway.upload_bulk_files(payloads, parent_id=args.parent)
        return result.model_dump_json(by_alias=True, indent=2)

    if args.command == "delete":
        gateway.delete_file(args.file_id)
        return None

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging()
    settings = get_settings()

    gateway = initialize_gateway(settings)
    if gateway is None:
        logging.critical("Could not establish a connection to Google Drive.")
        return 2

    try:
        output = run_command(gateway, args, settings)
    except ValidationError as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        return 1
    except ProviderError as e:
        print(f"Google Drive error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Could not read local file: {e}", file=sys.stderr)
        return 1

    if output is not None:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
