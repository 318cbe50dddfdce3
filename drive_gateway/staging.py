# staging.py
import io
import logging
import mimetypes
import os
import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from pydantic import BaseModel, PrivateAttr

DEFAULT_MIME_TYPE = "application/octet-stream"


class UploadPayload(BaseModel):
    """
    A payload waiting to be uploaded: its original name, declared mime type and
    the bytes themselves, either held in memory (`content`) or staged in a local
    file (`staged_path`).

    Content rules (a non-empty name, exactly one non-empty source) are checked
    by the gateway inside its cleanup scope, not here, so that a rejected
    payload still releases its staged file.
    """

    name: str = ""
    mime_type: Optional[str] = None
    content: Optional[bytes] = None
    staged_path: Optional[Path] = None

    _discarded: bool = PrivateAttr(default=False)

    @property
    def resolved_mime_type(self) -> str:
        return self.mime_type or DEFAULT_MIME_TYPE

    @property
    def is_staged(self) -> bool:
        return self.staged_path is not None

    @contextmanager
    def open_stream(self) -> Iterator[BinaryIO]:
        """Yields a readable binary stream over the payload bytes."""
        if self.content is not None:
            yield io.BytesIO(self.content)
            return
        with open(self.staged_path, "rb") as fh:
            yield fh

    def discard(self):
        """
        Removes the staged file. Only the first call touches the filesystem;
        later calls are no-ops. A failed removal is logged and swallowed so it
        can never replace the error of the operation that owns the payload.
        """
        if self.staged_path is None or self._discarded:
            return
        self._discarded = True
        try:
            os.remove(self.staged_path)
            logging.info(f"Removed staged file {self.staged_path}")
        except FileNotFoundError:
            logging.warning(
                f"Could not remove staged file {self.staged_path} as it was not found."
            )
        except OSError as e:
            logging.error(f"Error removing staged file {self.staged_path}: {e}")


def stage_file(
    source: Path, staging_dir: Path, mime_type: Optional[str] = None
) -> UploadPayload:
    """
    Copies a local file into the staging directory and returns a payload that
    owns the copy. The original file is never touched by the upload cleanup.
    """
    source = Path(source)
    staging_dir = Path(staging_dir)
    staging_dir.mkdir(parents=True, exist_ok=True)

    staged_path = staging_dir / f"{uuid.uuid4().hex}_{source.name}"
    shutil.copyfile(source, staged_path)
    logging.info(f"Staged {source} as {staged_path}")

    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(source.name)

    return UploadPayload(
        name=source.name, mime_type=mime_type, staged_path=staged_path
    )
