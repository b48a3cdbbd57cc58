"""
File: krelay/files.py

Project: K Relay

Purpose:
Serve generated spreadsheets by filename.
- GET /files/{filename}

Rules:
- Filename is reduced to [A-Za-z0-9._-] before lookup
- Only .xlsx files directly under EXPORT_DIR are served
"""

import re
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from krelay import config

router = APIRouter(prefix="/files", tags=["files"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(filename: str) -> Optional[str]:
    safe = _UNSAFE_CHARS.sub("", filename or "")
    if not safe or safe.startswith(".") or not safe.endswith(".xlsx"):
        return None
    return safe


def export_dir() -> Path:
    return Path(config.EXPORT_DIR)


@router.get("/{filename}")
def download_file(filename: str):
    safe = sanitize_filename(filename)
    if safe is None:
        raise HTTPException(status_code=404, detail="File not found")

    path = export_dir() / safe
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(path, media_type=XLSX_MEDIA_TYPE, filename=safe)
