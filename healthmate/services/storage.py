"""Uploaded report files on local disk. Only the owner downloads them, through the reports API."""
import logging
import secrets
import time
from pathlib import Path

from healthmate.core.config import settings

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"
REPORTS_SUBDIR = "reports"

# MIME type -> stored file extension
ALLOWED_REPORT_TYPES = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}


def reports_dir() -> Path:
    return Path(settings.upload_dir) / REPORTS_SUBDIR


def _stored_name(content_type: str) -> str:
    ext = ALLOWED_REPORT_TYPES[content_type]
    unique = f"{int(time.time() * 1000)}-{secrets.token_hex(8)}"
    return f"report-{unique}{ext}"


def save_report_file(content: bytes, content_type: str) -> str:
    """Writes the upload and returns its storage key, e.g. /uploads/reports/report-<ms>-<hex>.pdf."""
    target_dir = reports_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    name = _stored_name(content_type)
    (target_dir / name).write_bytes(content)
    return f"{UPLOADS_URL_PREFIX}/{REPORTS_SUBDIR}/{name}"


def path_for_url(file_url: str) -> Path | None:
    prefix = f"{UPLOADS_URL_PREFIX}/"
    if not file_url.startswith(prefix):
        return None
    relative = file_url[len(prefix) :]
    root = Path(settings.upload_dir).resolve()
    path = (root / relative).resolve()
    # Stay inside upload_dir
    if root not in path.parents:
        return None
    return path


def delete_report_file(file_url: str) -> None:
    """Removes the stored file; an already missing file is not an error."""
    path = path_for_url(file_url)
    if path is None:
        logger.warning("Refusing to delete file outside upload dir: %s", file_url)
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Report file delete failed for %s: %s", file_url, e)
