import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_api.core.errors import error_body, validation_failed
from contact_api.core.mailer import DispatchOutcome, FailureReason, MailDispatcher
from contact_api.core.settings import Settings
from contact_api.dependencies import get_dispatcher, get_settings
from contact_api.lib.contact_form import (
    ContactSubmission,
    NormalizedSubmission,
    sanitize_submission,
    validate_submission,
)
from contact_api.lib.rendering import render_acknowledgment, render_notification
from contact_api.lib.timestamps import iso_timestamp, utcnow

log = logging.getLogger("uvicorn.error")
router = APIRouter(prefix="/api", tags=["contact"])

SUCCESS_MESSAGE = "Message sent successfully! I'll get back to you soon."
FAILURE_MESSAGES = {
    FailureReason.AUTHENTICATION: "Email authentication failed. Please contact the administrator.",
    FailureReason.CONNECTION: "Email service connection failed. Please try again later.",
    FailureReason.UNKNOWN: "Failed to send message. Please try again later.",
}
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


@dataclass(frozen=True)
class ContactResult:
    """What happened to one submission: the notification decides the response,
    the acknowledgment is best effort and only reported in logs."""

    submission: NormalizedSubmission
    notification: DispatchOutcome
    acknowledgment: Optional[DispatchOutcome] = None

    @property
    def delivered(self) -> bool:
        return self.notification.sent


def deliver_submission(
    submission: NormalizedSubmission,
    dispatcher: MailDispatcher,
    settings: Settings,
    now: datetime,
) -> ContactResult:
    notification = render_notification(
        submission,
        now,
        sender_address=settings.sender_address,
        recipient_address=settings.notification_recipient,
    )
    log.info(f"[contact] sending notification to {notification.to_address}")
    outcome = dispatcher.send(notification)
    if not outcome.sent:
        log.error(f"[contact] notification failed ({outcome.reason.value}): {outcome.detail}")
        if outcome.reason is FailureReason.AUTHENTICATION:
            log.error("[contact] SMTP authentication rejected - check GMAIL_USER and GMAIL_APP_PASSWORD")
        elif outcome.reason is FailureReason.CONNECTION:
            log.error(f"[contact] cannot reach {settings.smtp_host}:{settings.smtp_port} - check network access")
        return ContactResult(submission, outcome)

    log.info("[contact] notification sent")
    if not settings.send_auto_reply:
        return ContactResult(submission, outcome)

    ack = dispatcher.send(
        render_acknowledgment(
            submission,
            sender_address=settings.sender_address,
            persona_name=settings.auto_reply_name,
            persona_title=settings.auto_reply_title,
        )
    )
    if ack.sent:
        log.info(f"[contact] auto-reply sent to {submission.email}")
    else:
        log.warning(f"[contact] auto-reply to {submission.email} failed ({ack.reason.value}): {ack.detail}")
    return ContactResult(submission, outcome, ack)


def _body_error(kind: str, msg: str) -> RequestValidationError:
    return RequestValidationError([{"type": kind, "loc": ("body",), "msg": msg, "input": None}])


async def read_submission(request: Request) -> ContactSubmission:
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(_FORM_TYPES):
        try:
            form = await request.form()
        except StarletteHTTPException as e:
            # starlette reports unparseable multipart bodies as a bare 400
            raise _body_error("form_invalid", f"Malformed form body: {e.detail}") from e
        payload: Any = {k: v for k, v in form.items() if isinstance(v, str)}
    else:
        raw = await request.body()
        try:
            payload = json.loads(raw) if raw.strip() else {}
        except ValueError:
            raise _body_error("json_invalid", "Request body must be valid JSON")

    if not isinstance(payload, dict):
        raise _body_error("model_type", "Request body must be a JSON object")
    try:
        return ContactSubmission.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


@router.post("/contact")
async def contact(
    request: Request,
    settings: Settings = Depends(get_settings),
    dispatcher: MailDispatcher = Depends(get_dispatcher),
):
    log.info("[contact] new contact form submission received")
    submission = await read_submission(request)

    errors = validate_submission(submission)
    if errors:
        log.info(f"[contact] validation failed with {len(errors)} error(s)")
        return validation_failed(errors)

    normalized = sanitize_submission(submission)
    result = await run_in_threadpool(deliver_submission, normalized, dispatcher, settings, utcnow())

    if not result.delivered:
        outcome = result.notification
        return JSONResponse(
            status_code=500,
            content=error_body(FAILURE_MESSAGES[outcome.reason], settings, outcome.detail),
        )

    data: Dict[str, Any] = {"name": normalized.name, "timestamp": iso_timestamp(utcnow())}
    return {"success": True, "message": SUCCESS_MESSAGE, "data": data}
