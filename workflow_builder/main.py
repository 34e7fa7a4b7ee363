import logging
from datetime import datetime, UTC
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import Engine
from sqlmodel import create_engine

from .config import configure_logging, settings
from .domain.errors import (
    DanglingReferenceError,
    DuplicateIdError,
    InvalidDocumentError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    WorkflowError,
)
from .repository import WorkflowRepository
from .routers import approvals, workflows

logger = logging.getLogger(__name__)


def status_for(exc: WorkflowError) -> int:
    """HTTP status for a domain error"""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (DuplicateIdError, InvalidTransitionError)):
        return 409
    if isinstance(exc, (ValidationError, DanglingReferenceError, InvalidDocumentError)):
        return 422
    return 500


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """Build the API; tests pass their own (in-memory) engine."""
    if engine is None:
        engine = create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
        )
    repo = WorkflowRepository(engine)
    repo.create_schema()

    app = FastAPI(title="Workflow Builder API", version="1.0.0", openapi_url="/openapi.json")
    app.state.repo = repo

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(workflows.router, tags=["workflows"])
    app.include_router(approvals.router, tags=["approvals"])

    @app.get("/health", tags=["health"])
    def health_check():
        return {"status": "healthy", "timestamp": datetime.now(UTC).isoformat()}

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(request: Request, exc: WorkflowError):
        status_code = status_for(exc)
        violations = exc.violations if isinstance(exc, InvalidDocumentError) else [exc]
        logger.warning("%s %s -> %s %s", request.method, request.url.path, status_code, exc.message)
        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    "details": [{"path": v.path or "", "msg": v.message} for v in violations],
                }
            },
        )

    return app


configure_logging()
app = create_app()
