"""Notification trigger, preview and test endpoints."""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from doc_tracker.exceptions import DataAccessError, DocTrackerError, ValidationError
from doc_tracker.models import RunResult, RunStatus
from doc_tracker.notifications import NotificationService

logger = structlog.get_logger()

router = APIRouter(prefix="/notifications", tags=["notifications"])


class TestEmailRequest(BaseModel):
    email: str | None = None


def get_service(request: Request) -> NotificationService:
    return request.app.state.service


def trigger_credential(request: Request) -> str | None:
    """Secret presented by the caller via ``x-cron-secret`` or a bearer token."""

    secret = request.headers.get("x-cron-secret")
    if secret:
        return secret

    authorization = request.headers.get("authorization") or ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def _run_response(result: RunResult) -> JSONResponse:
    if result.status is RunStatus.UNAUTHORIZED:
        return JSONResponse({"error": result.error or "Unauthorized"}, status_code=401)
    if result.status is RunStatus.FAILED:
        return JSONResponse({"error": result.error, "details": result.details}, status_code=500)

    assert result.summary is not None
    return JSONResponse(result.summary.model_dump(mode="json"))


async def _run(service: NotificationService, request: Request) -> JSONResponse:
    try:
        result = await service.run(credential=trigger_credential(request))
    except Exception as exc:  # noqa: BLE001
        logger.exception("notification_run_crashed", error=str(exc))
        return JSONResponse(
            {"error": "Internal server error", "details": str(exc)},
            status_code=500,
        )
    return _run_response(result)


@router.get("")
async def get_notifications(
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
    test: str | None = None,
    trigger: str | None = None,
    service: NotificationService = Depends(get_service),
):
    if trigger == "cron":
        return await _run(service, request)

    if test == "true":
        try:
            return await service.verify_channel()
        except DocTrackerError as exc:
            logger.error("email_configuration_invalid", error=str(exc))
            return JSONResponse(
                {"status": "error", "message": "Email configuration failed", "error": str(exc)},
                status_code=500,
            )

    if not user_id:
        return JSONResponse(
            {
                "error": "User ID is required. Use ?userId=xxx, ?test=true, or ?trigger=cron",
                "intervals": list(service.settings.default_intervals),
            },
            status_code=400,
        )

    try:
        preview = await asyncio.to_thread(service.preview, user_id)
    except DataAccessError as exc:
        logger.error("notification_preview_failed", user_id=user_id, error=str(exc))
        return JSONResponse({"error": "Failed to fetch documents"}, status_code=500)
    return preview.model_dump(mode="json")


@router.post("")
async def post_notifications(
    request: Request,
    service: NotificationService = Depends(get_service),
):
    return await _run(service, request)


@router.put("")
async def put_notifications(
    body: TestEmailRequest,
    service: NotificationService = Depends(get_service),
):
    if not body.email:
        return JSONResponse({"error": "Email is required"}, status_code=400)

    try:
        return await service.send_test(body.email)
    except ValidationError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except DocTrackerError as exc:
        logger.error("test_notification_failed", to=body.email, error=str(exc))
        return JSONResponse(
            {"error": "Failed to send test notification", "details": str(exc)},
            status_code=500,
        )
