import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from certbatch.core.config import Settings, load_settings
from certbatch.core.errors import CertificateError
from certbatch.core.storage import ensure_output_root
from certbatch.routes import artifacts, certificates
from certbatch.workers.certificates import (
    CertificateWorker,
    build_certificate_worker,
    configure_certificate_worker,
)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, worker: CertificateWorker | None = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if worker is None:
        if not settings.google.is_configured and settings.roster_backend == "google":
            logger.warning("Google OAuth credentials are not configured; certificate requests will fail")
        worker = build_certificate_worker(settings)
    configure_certificate_worker(worker)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        ensure_output_root(worker.artifacts.root)
        worker.progress.reset()
        yield
        if worker.is_running:
            logger.warning("Shutting down while %s is still running", worker.current_job.job_id)
        worker.close()

    app = FastAPI(title="Certificate Batch API", version="0.1.0", lifespan=lifespan)

    origins = list(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(CertificateError)
    async def certificate_error_handler(_: Request, exc: CertificateError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"status": "error", "message": exc.message})

    app.include_router(certificates.router)
    app.include_router(artifacts.router)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Certificate Batch API",
                "docs": "/docs",
                "health": "/fetch-progress",
            }
        )

    return app


app = create_app()
