"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from attendance_engine.api.models import NotePayload, ScanEventPayload
from attendance_engine.api.security import require_admin, require_device
from attendance_engine.app_logging import configure_logging
from attendance_engine.containers import AppContainer
from attendance_engine.domain.errors import AttendanceError
from attendance_engine.domain.models import ActorContext

_STATUS_CODES = {
    "identity_not_found": 404,
    "session_not_found": 404,
    "fingerprint_locked": 403,
    "not_enrolled": 403,
    "record_frozen": 403,
    "duplicate_check_in": 409,
    "no_open_session": 409,
    "correction_window_expired": 409,
    "invalid_request": 400,
    "transient_storage_error": 503,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(AttendanceError)
    async def attendance_error_handler(
        request: Request, exc: AttendanceError
    ) -> JSONResponse:
        status_code = _STATUS_CODES.get(exc.code, 500)
        log = logger.warning if status_code >= 500 else logger.info  # noqa: PLR2004
        log("Request %s rejected: %s (%s)", request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "invalid_request",
                "message": _describe_validation_error(exc),
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/attendance/scan", dependencies=[Depends(require_device)])
    async def scan(payload: ScanEventPayload, request: Request) -> dict[str, object]:
        """Ingest a single scan event."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.router.handle(payload.to_event())
        return result.to_payload()

    @app.post(
        "/attendance/{session_id}/note", dependencies=[Depends(require_admin)]
    )
    async def annotate(
        session_id: UUID, payload: NotePayload, request: Request
    ) -> dict[str, object]:
        """Attach an admin note to a session."""
        state_container: AppContainer = request.app.state.container
        session = await run_in_threadpool(
            state_container.annotation_service.annotate,
            session_id,
            payload.note,
            ActorContext(actor_id=payload.actor_id, privileged=payload.privileged),
        )
        return {
            "success": True,
            "session_id": str(session.id),
            "status": session.status,
            "admin_note": session.admin_note,
        }

    return app


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Return a compact description of the first validation problem."""
    errors = exc.errors()
    if not errors:
        return "Malformed request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else str(message)
