from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from certbatch.core.errors import ValidationError
from certbatch.workers.certificates import CertificateRequest, get_certificate_worker

router = APIRouter(tags=["certificates"])


@router.post("/generate-certificates", status_code=status.HTTP_202_ACCEPTED)
async def generate_certificates(payload: dict) -> JSONResponse:
    """Validate the request, launch the batch and return without waiting for it."""
    request = CertificateRequest.from_payload(payload)
    worker = get_certificate_worker()
    job = await worker.launch(request)
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={
            "status": "success",
            "message": "Certificates generation started successfully! "
            "You can download the file once it is ready.",
            "jobId": job.job_id,
            "totalCertificates": job.total,
        },
    )


@router.post("/unique-schools")
async def unique_schools(payload: dict) -> dict:
    sheet_id = str(payload.get("sheetId") or "").strip()
    sheet_name = str(payload.get("sheetName") or "").strip()
    if not sheet_id or not sheet_name:
        raise ValidationError("Sheet ID and Sheet Name are required.")

    worker = get_certificate_worker()
    schools = await worker.unique_schools(sheet_id, sheet_name)
    return {"schools": schools}
