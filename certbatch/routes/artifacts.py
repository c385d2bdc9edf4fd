from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from certbatch.core.errors import ArtifactNotFoundError
from certbatch.workers.certificates import get_certificate_worker

router = APIRouter(tags=["artifacts"])

MEDIA_TYPES = {".zip": "application/zip", ".pdf": "application/pdf"}


@router.get("/fetch-progress")
async def fetch_progress() -> dict:
    worker = get_certificate_worker()
    return worker.progress.read().to_payload()


@router.get("/download-file")
async def download_file() -> FileResponse:
    """Stream the finished archive (or merged PDF) once, then delete it."""
    worker = get_certificate_worker()
    path = worker.artifacts.current()
    if path is None:
        raise ArtifactNotFoundError("File not found.")
    return FileResponse(
        path,
        filename=path.name,
        media_type=MEDIA_TYPES.get(path.suffix, "application/octet-stream"),
        background=BackgroundTask(path.unlink, missing_ok=True),
    )
