from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cloudguard.alerts.errors import (
    AlertError,
    AlertNotFound,
    DuplicateAlert,
    InvalidTransition,
    MalformedRequest,
)
from cloudguard.alerts.store import AlertStore
from cloudguard.api.schemas import AlertCreate, AlertOut, ErrorResponse, StatsResponse, StatusUpdate
from cloudguard.config import Settings
from cloudguard.core.alert import Alert, make_alert_id, utc_now_iso
from cloudguard.view.filters import FilterCriteria, filter_alerts
from cloudguard.view.stats import summarize

log = logging.getLogger("cloudguard.api")

ERROR_STATUS = {
    AlertNotFound: 404,
    InvalidTransition: 400,
    MalformedRequest: 400,
    DuplicateAlert: 409,
}


def _request_id() -> str:
    return uuid.uuid4().hex


def _error(request_id: str, status: int, code: str, message: str, *, details: Dict[str, Any] | None = None, hint: str | None = None):
    payload = ErrorResponse(
        request_id=request_id,
        error={
            "code": code,
            "message": message,
            "details": details or {},
        },
        hint=hint,
    ).model_dump()
    return JSONResponse(payload, status_code=status, headers={"x-request-id": request_id})


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "") or _request_id()


def build_store(settings: Settings) -> AlertStore:
    """
    Startup store: the persisted snapshot if one exists, else the seed file, else empty.
    """
    persist = settings.persist_path
    if persist and Path(persist).exists():
        log.info("Loading alerts from snapshot %s", persist)
        return AlertStore.load_jsonl(persist, persist_path=persist)
    if settings.seed_path:
        log.info("Seeding alerts from %s", settings.seed_path)
        return AlertStore.load_jsonl(settings.seed_path, persist_path=persist)
    return AlertStore(persist_path=persist)


def get_store(request: Request) -> AlertStore:
    return request.app.state.store


_NOT_FOUND_DOC = {
    "model": ErrorResponse,
    "content": {
        "application/json": {
            "example": {
                "ok": False,
                "request_id": "abc123",
                "error": {"code": "NOT_FOUND", "message": "Alert 'ALT-404' not found.", "details": {"alert_id": "ALT-404"}},
                "hint": None,
            }
        }
    },
}

_BAD_TRANSITION_DOC = {
    "model": ErrorResponse,
    "content": {
        "application/json": {
            "example": {
                "ok": False,
                "request_id": "abc123",
                "error": {
                    "code": "INVALID_TRANSITION",
                    "message": "Cannot move alert from New to Resolved; next status must be Acknowledged.",
                    "details": {"current": "New", "requested": "Resolved", "allowed": "Acknowledged"},
                },
                "hint": "Status only moves New -> Acknowledged -> In-Progress -> Resolved.",
            }
        }
    },
}


def create_app(store: Optional[AlertStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if not log.handlers:
        logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    app = FastAPI(
        title="CloudGuard API",
        version="0.1.0",
        description="Security alert store with a fixed status lifecycle.",
    )
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    # -----------------------------
    # Middleware: request_id
    # -----------------------------
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        rid = request.headers.get("x-request-id") or _request_id()
        request.state.request_id = rid
        resp = await call_next(request)
        resp.headers["x-request-id"] = rid
        return resp

    # -----------------------------
    # Exception handlers (structured errors)
    # -----------------------------
    @app.exception_handler(AlertError)
    async def handle_alert_error(request: Request, exc: AlertError):
        status = ERROR_STATUS.get(type(exc), 400)
        hint = None
        if isinstance(exc, InvalidTransition):
            hint = "Status only moves New -> Acknowledged -> In-Progress -> Resolved."
        return _error(_rid(request), status, exc.code, exc.message, details=exc.details, hint=hint)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ]
        return _error(
            _rid(request),
            400,
            MalformedRequest.code,
            "Request payload is missing or has wrong-typed fields.",
            details={"errors": errors},
        )

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, exc: Exception):
        rid = _rid(request)
        log.exception("Unhandled error rid=%s path=%s", rid, request.url.path)
        return _error(
            rid,
            500,
            "INTERNAL_ERROR",
            "Unexpected server error.",
            details={"type": exc.__class__.__name__},
            hint="Check server logs using the request_id header.",
        )

    # -----------------------------
    # Routes
    # -----------------------------
    @app.get(
        "/health",
        response_model=dict,
        responses={
            200: {"content": {"application/json": {"example": {"ok": True, "status": "ok"}}}},
        },
    )
    def health(request: Request):
        return {"ok": True, "status": "ok", "request_id": getattr(request.state, "request_id", "")}

    @app.get("/alerts", response_model=List[AlertOut])
    def list_alerts(
        severity: Optional[str] = Query(None, description='"all" or High/Medium/Low'),
        status: Optional[str] = Query(None, description='"all" or a status; hyphens and case ignored'),
        category: Optional[str] = Query(None, description='"all" or CVE/S3/IAM/Network/Activity'),
        search: Optional[str] = Query(None, description="Substring of description or id"),
        store: AlertStore = Depends(get_store),
    ):
        criteria = FilterCriteria.from_mapping(
            {"severity": severity, "status": status, "category": category, "search": search}
        )
        return [a.to_dict() for a in filter_alerts(store.list(), criteria)]

    @app.get("/alerts/stats", response_model=StatsResponse)
    def alert_stats(store: AlertStore = Depends(get_store)):
        return summarize(store.list())

    @app.get("/alerts/{alert_id}", response_model=AlertOut, responses={404: _NOT_FOUND_DOC})
    def get_alert(alert_id: str, store: AlertStore = Depends(get_store)):
        return store.get(alert_id).to_dict()

    @app.post(
        "/alerts",
        response_model=AlertOut,
        status_code=201,
        responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    )
    def create_alert(body: AlertCreate, request: Request, store: AlertStore = Depends(get_store)):
        alert = Alert(
            id=body.id or make_alert_id(),
            severity=body.severity,
            category=body.category,
            description=body.description,
            timestamp=body.timestamp or utc_now_iso(),
        )
        stored = store.add(alert)
        log.info("Alert created rid=%s id=%s severity=%s category=%s",
                 _rid(request), stored.id, stored.severity.value, stored.category.value)
        return JSONResponse(stored.to_dict(), status_code=201)

    @app.put(
        "/alerts/{alert_id}/status",
        response_model=AlertOut,
        responses={400: _BAD_TRANSITION_DOC, 404: _NOT_FOUND_DOC},
    )
    def update_status(alert_id: str, body: StatusUpdate, request: Request, store: AlertStore = Depends(get_store)):
        updated = store.advance_status(alert_id, body.status)
        log.info("Alert status changed rid=%s id=%s status=%s", _rid(request), alert_id, updated.status.value)
        return updated.to_dict()

    return app


app = create_app()
