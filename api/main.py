"""Ledger API: FastAPI entrypoint (lancamentos resource + health check)."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from api.lancamentos import router as lancamentos_router
from src.core.config import settings
from src.core.db import async_session, engine
from src.core.exceptions import NotFoundError, ReportError, StorageError, ValidationError
from src.core.storage import close_attachment_store

logging.basicConfig(level=getattr(logging, settings.log_level))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting ledger API...")
    if not settings.storage_configured:
        logger.warning("Supabase storage not configured; attachment uploads will fail")

    yield

    await close_attachment_store()
    await engine.dispose()
    logger.info("Shutting down ledger API...")


app = FastAPI(title="Lançamentos API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(lancamentos_router)


# ------------------------------------------------------------------
# Domain errors -> HTTP
# ------------------------------------------------------------------
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Attachment storage failed"})


@app.exception_handler(ReportError)
async def report_handler(request: Request, exc: ReportError):
    logger.error("Report failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Report generation failed"})


@app.get("/health")
async def health():
    checks = {"api": "ok"}
    try:
        async with async_session() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception:
        checks["database"] = "error"
    status = "ok" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, **checks}
