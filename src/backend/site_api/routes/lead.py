from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from site_api.config import Settings, get_settings
from site_api.db.leads import insert_lead
from site_api.db.supabase import RecordStoreError
from site_api.models.lead import (
    ErrorResponse,
    LeadAccepted,
    LeadSubmission,
    LeadValidationError,
)
from site_api.utils.http import (
    json_response,
    parse_json_body,
    preflight_response,
)
from site_api.utils.logger import get_logger
from site_api.utils.mailer import (
    MailDeliveryError,
    send_acknowledgement,
    send_lead_notification,
)

router = APIRouter(prefix="/api", tags=["leads"])
logger = get_logger(__name__)

ALLOW_HEADERS = ("Content-Type", "Authorization")
FRIENDLY_ERROR = "We could not process your request right now. Please try again shortly."


def _respond(status_code: int, body: Dict[str, Any], **kwargs: Any) -> JSONResponse:
    return json_response(status_code, body, ALLOW_HEADERS, **kwargs)


def _process_lead(
    payload: Dict[str, Any],
    settings: Settings,
    background_tasks: BackgroundTasks,
) -> JSONResponse:
    try:
        lead = LeadSubmission.from_payload(payload)
    except LeadValidationError as exc:
        return _respond(400, {"error": str(exc)})

    missing = settings.missing_lead_settings()
    if missing:
        logger.error("lead: missing %s", ", ".join(missing))
        return _respond(503, {"error": FRIENDLY_ERROR})

    try:
        insert_lead(settings, lead)
    except RecordStoreError:
        logger.exception("Record store lead insert failed for email=%s", lead.email)
        return _respond(500, {"error": FRIENDLY_ERROR})

    try:
        send_lead_notification(settings, lead)
    except MailDeliveryError:
        # The lead is already stored; only the operator email is missing.
        logger.exception("Lead notification failed for email=%s", lead.email)
        return _respond(502, {"error": FRIENDLY_ERROR})

    response = _respond(200, LeadAccepted().model_dump(), background=background_tasks)
    if settings.email_autoreply:
        background_tasks.add_task(send_acknowledgement, settings, lead)
    return response


@router.options("/lead", include_in_schema=False)
def lead_preflight() -> Response:
    return preflight_response(ALLOW_HEADERS)


@router.post(
    "/lead",
    response_model=LeadAccepted,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def create_lead_endpoint(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
):
    """Store a contact-form lead and notify the team by email."""
    try:
        payload = parse_json_body(await request.body())
        return await run_in_threadpool(_process_lead, payload, settings, background_tasks)
    except Exception:
        logger.exception("Lead handler failed unexpectedly")
        return _respond(500, {"error": FRIENDLY_ERROR})
