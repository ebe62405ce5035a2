"""
FastAPI Application Entry Point

Cafe CMS admin API - backup/restore, settings and WhatsApp integration.
Supports both Mock services (development) and Real APIs (production).

Endpoints:
    - GET  /api/admin/backup: Download a full backup
    - POST /api/admin/backup/restore: Restore a backup file
    - GET  /api/admin/backup/snapshots: List stored snapshots
    - POST /api/admin/backup/snapshots: Queue a snapshot
    - GET/PATCH /api/settings: Cafe settings
    - GET/PUT /api/admin/whatsapp-settings: WhatsApp settings
    - POST /api/admin/whatsapp-settings/test: Send a test message
    - GET/POST /api/webhooks/whatsapp: WhatsApp webhook
    - GET /health: System health check
"""

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

import redis
from fastapi import Body, Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from cafe_cms.core.config import get_settings, setup_logging
from cafe_cms.core.exceptions import CafeError
from cafe_cms.database import engine, get_db, init_db
from cafe_cms.schemas import (
    CafeSettingsResponse,
    CafeSettingsUpdate,
    ErrorResponse,
    HealthResponse,
    SendMessageResponse,
    SendTestMessageRequest,
    SnapshotListResponse,
    SnapshotQueuedResponse,
    SnapshotResponse,
    WebhookReceivedResponse,
    WhatsAppSettingsResponse,
    WhatsAppSettingsUpdate,
)
from cafe_cms.services.backup import (
    BackupService,
    RestoreSummary,
    SnapshotStore,
    UploadsStore,
    backup_filename,
    get_snapshot_store,
    get_uploads_store,
)
from cafe_cms.services.settings import get_or_create_cafe_settings, update_cafe_settings
from cafe_cms.services.whatsapp import BaseWhatsAppClient, WhatsAppService, get_whatsapp_client
from cafe_cms.tasks import create_backup_snapshot

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    # Initialize database
    await init_db()
    logger.info("Database initialized")

    uploads = get_uploads_store()
    roots = uploads.resolve_roots()
    if roots:
        logger.info(f"Uploads root: {roots[0]}")
    else:
        logger.warning(
            f"No uploads directory found; files will be written to {uploads.primary_root()}"
        )

    whatsapp_client = get_whatsapp_client()
    logger.info(f"WhatsApp Service: {whatsapp_client.provider_name}")

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Cafe content management API: full backup and restore of business data "
        "and uploaded files, cafe settings and WhatsApp Cloud API messaging."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded images, QR codes and payment proofs
app.mount(
    "/uploads",
    StaticFiles(directory=get_uploads_store().primary_root(), check_dir=False),
    name="uploads",
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_backup_service(
    db: AsyncSession = Depends(get_db),
    uploads: UploadsStore = Depends(get_uploads_store),
) -> BackupService:
    return BackupService(db, uploads)


def get_whatsapp_service(
    db: AsyncSession = Depends(get_db),
    client: BaseWhatsAppClient = Depends(get_whatsapp_client),
) -> WhatsAppService:
    return WhatsAppService(db, client)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "backup": "/api/admin/backup",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    whatsapp_client: BaseWhatsAppClient = Depends(get_whatsapp_client),
) -> HealthResponse:
    """Verify all system components are operational."""

    # Check database
    db_status = "healthy"
    try:
        await db.execute(select(func.now()))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    # Check Redis
    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
        r.ping()
        r.close()
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    # Check WhatsApp transport
    whatsapp_status = "healthy" if await whatsapp_client.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, redis_status, whatsapp_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        whatsapp_service=whatsapp_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# BACKUP ENDPOINTS
# =============================================================================

@app.get(
    "/api/admin/backup",
    tags=["Backup"],
    summary="Download Backup",
)
async def download_backup(
    service: BackupService = Depends(get_backup_service),
) -> JSONResponse:
    """
    Export all business data and referenced uploads as one JSON document.
    """
    payload = await service.create_backup()
    filename = backup_filename(payload.created_at)

    return JSONResponse(
        content=payload.model_dump(mode="json", by_alias=True),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post(
    "/api/admin/backup/restore",
    response_model=RestoreSummary,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
    },
    tags=["Backup"],
    summary="Restore Backup",
)
async def restore_backup(
    backup: Optional[UploadFile] = File(None),
    service: BackupService = Depends(get_backup_service),
) -> dict[str, Any]:
    """
    Replace all business data and uploads with the contents of a backup file.

    The upload is a multipart form with the file in the `backup` field.
    """
    if backup is None:
        raise HTTPException(status_code=400, detail="Backup file is required.")

    limit = settings.backup_max_upload_bytes
    too_large = HTTPException(
        status_code=413,
        detail=f"Backup file exceeds {settings.backup_max_upload_mb} MB limit."
    )
    if backup.size is not None and backup.size > limit:
        raise too_large

    # Size can be unknown; never read more than one byte past the limit
    content = await backup.read(limit + 1)
    if len(content) > limit:
        raise too_large

    try:
        raw = json.loads(content)
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise HTTPException(status_code=400, detail="Backup file is not valid JSON.")

    logger.info(f"Restoring backup {backup.filename} ({len(content):,} bytes)")
    summary = await service.restore_backup(raw)
    return summary.model_dump(by_alias=True)


@app.get(
    "/api/admin/backup/snapshots",
    response_model=SnapshotListResponse,
    tags=["Backup"],
    summary="List Snapshots",
)
async def list_snapshots(
    store: SnapshotStore = Depends(get_snapshot_store),
) -> SnapshotListResponse:
    """Stored backup snapshots, newest first."""
    snapshots = [
        SnapshotResponse(**info.to_dict()) for info in store.list_snapshots()
    ]
    return SnapshotListResponse(total=len(snapshots), snapshots=snapshots)


@app.post(
    "/api/admin/backup/snapshots",
    response_model=SnapshotQueuedResponse,
    status_code=202,
    tags=["Backup"],
    summary="Queue Snapshot",
)
async def queue_snapshot() -> SnapshotQueuedResponse:
    """Queue a background snapshot on the Celery worker."""
    task = create_backup_snapshot.delay()
    logger.info(f"Snapshot task queued: {task.id}")

    return SnapshotQueuedResponse(
        success=True,
        task_id=task.id,
        message="Backup snapshot queued",
    )


# =============================================================================
# SETTINGS ENDPOINTS
# =============================================================================

@app.get(
    "/api/settings",
    response_model=CafeSettingsResponse,
    tags=["Settings"],
)
async def read_settings(db: AsyncSession = Depends(get_db)) -> CafeSettingsResponse:
    """Cafe settings, created with defaults on first access."""
    cafe = await get_or_create_cafe_settings(db)
    return CafeSettingsResponse.model_validate(cafe)


@app.patch(
    "/api/settings",
    response_model=CafeSettingsResponse,
    tags=["Settings"],
)
async def patch_settings(
    update: CafeSettingsUpdate,
    db: AsyncSession = Depends(get_db),
) -> CafeSettingsResponse:
    cafe = await update_cafe_settings(db, update)
    return CafeSettingsResponse.model_validate(cafe)


# =============================================================================
# WHATSAPP ENDPOINTS
# =============================================================================

@app.get(
    "/api/admin/whatsapp-settings",
    response_model=WhatsAppSettingsResponse,
    tags=["WhatsApp"],
)
async def read_whatsapp_settings(
    service: WhatsAppService = Depends(get_whatsapp_service),
) -> WhatsAppSettingsResponse:
    """WhatsApp settings with the access token masked."""
    return service.sanitize_settings(await service.get_settings())


@app.put(
    "/api/admin/whatsapp-settings",
    response_model=WhatsAppSettingsResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["WhatsApp"],
)
async def update_whatsapp_settings(
    update: WhatsAppSettingsUpdate,
    service: WhatsAppService = Depends(get_whatsapp_service),
) -> WhatsAppSettingsResponse:
    return await service.update_settings(update)


@app.post(
    "/api/admin/whatsapp-settings/test",
    response_model=SendMessageResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["WhatsApp"],
)
async def send_whatsapp_test(
    request: SendTestMessageRequest,
    service: WhatsAppService = Depends(get_whatsapp_service),
) -> SendMessageResponse:
    """Send a test message through the configured business number."""
    await service.send_test_message(request.test_phone, request.message)
    return SendMessageResponse(success=True)


@app.get(
    "/api/webhooks/whatsapp",
    response_class=PlainTextResponse,
    tags=["WhatsApp"],
)
async def verify_whatsapp_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    service: WhatsAppService = Depends(get_whatsapp_service),
) -> PlainTextResponse:
    """Meta subscription handshake."""
    result = await service.verify_webhook(mode, token, challenge)
    if result is None:
        logger.warning("WhatsApp webhook verification failed")
        return PlainTextResponse("Forbidden", status_code=403)
    return PlainTextResponse(result)


@app.post(
    "/api/webhooks/whatsapp",
    response_model=WebhookReceivedResponse,
    tags=["WhatsApp"],
)
async def receive_whatsapp_webhook(
    payload: dict[str, Any] = Body(...),
    service: WhatsAppService = Depends(get_whatsapp_service),
) -> WebhookReceivedResponse:
    await service.log_inbound_webhook(payload)
    return WebhookReceivedResponse()


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(CafeError)
async def cafe_error_handler(request: Request, exc: CafeError) -> JSONResponse:
    """Render domain errors with their own status code."""
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": type(exc).__name__,
            "detail": exc.message,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )

