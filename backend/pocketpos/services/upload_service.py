# Overview: Product image storage under UPLOAD_FOLDER, exposed publicly as /uploads/<name>.

from __future__ import annotations

import os
import uuid
from pathlib import Path

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

PUBLIC_PREFIX = "/uploads/"
# No SVG: it can carry script that would run on this origin
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


class UploadError(Exception):
    """Raised for upload/delete errors; status is the HTTP code to report."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


def save_upload(file: FileStorage | None, upload_folder: str | os.PathLike) -> dict:
    """
    Store one image and return {"url", "name"}.

    The stored name is generated; only the (lower-cased) extension of the
    client's filename is kept.
    """
    if file is None or not file.filename:
        raise UploadError("No file uploaded")

    extension = Path(secure_filename(file.filename)).suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise UploadError("Only image files can be uploaded")

    folder = Path(upload_folder)
    folder.mkdir(parents=True, exist_ok=True)
    name = f"{uuid.uuid4().hex}{extension}"
    file.save(folder / name)
    return {"url": f"{PUBLIC_PREFIX}{name}", "name": name}


def resolve_public_path(url: str | None, upload_folder: str | os.PathLike) -> Path:
    """Map /uploads/<name> to a file inside upload_folder; rejects anything else."""
    if not url:
        raise UploadError("Image URL required")
    if not url.startswith(PUBLIC_PREFIX):
        raise UploadError("Invalid path")

    name = url[len(PUBLIC_PREFIX):]
    folder = Path(upload_folder).resolve()
    target = (folder / name).resolve()
    if not name or target.parent != folder:
        raise UploadError("Invalid path")
    return target


def delete_upload(url: str | None, upload_folder: str | os.PathLike) -> None:
    target = resolve_public_path(url, upload_folder)
    if not target.is_file():
        raise UploadError("File not found", status=404)
    try:
        target.unlink()
    except OSError as exc:
        raise UploadError("Deletion failed", status=500) from exc
