"""
Video upload API route.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from backend.src.application.dto.upload_request import UploadRequest
from backend.src.core.exceptions import ClientInputError

logger = logging.getLogger(__name__)

router = APIRouter()

CHUNK_SIZE = 1024 * 1024  # 1 MB


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def _read_limited(file: UploadFile, max_size_bytes: int, max_size_mb: int) -> bytes:
    """Read the upload in chunks, rejecting it once it exceeds the limit."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_size_bytes:
            raise ClientInputError(f"File too large. Maximum size: {max_size_mb}MB")
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/upload")
async def upload_video(
    request: Request,
    video: Optional[UploadFile] = File(None),
    label: Optional[str] = Form(None),
    sequence_name: Optional[str] = Form(None, alias="sequenceName"),
):
    """Slice an uploaded video into PNG frames under ``label``."""
    container = request.app.state.container
    settings = container.settings
    max_mb = settings.web.max_upload_size_mb
    max_size_bytes = max_mb * 1024 * 1024

    # Early rejection from Content-Length
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > max_size_bytes:
        raise ClientInputError(f"File too large. Maximum size: {max_mb}MB")

    video_bytes = b""
    filename = ""
    if video is not None:
        filename = video.filename or ""
        video_bytes = await _read_limited(video, max_size_bytes, max_mb)

    upload = UploadRequest(
        video_bytes=video_bytes,
        label=_clean(label) or "",
        sequence_name=_clean(sequence_name),
        filename=filename,
    )
    logger.info(
        "Upload received: label=%s sequence=%s file=%s (%d bytes)",
        upload.label, upload.sequence_name, filename, upload.size,
    )

    service = container.frame_extraction_service()
    result = await service.execute(upload)

    if not result.succeeded:
        return JSONResponse(
            status_code=500,
            content={"status": "server-error", "message": result.message},
        )
    return {
        "status": "accepted",
        "message": result.message,
        "label": result.slot.label,
        "sequence": result.slot.identifier,
        "frame_count": result.frame_count,
    }
