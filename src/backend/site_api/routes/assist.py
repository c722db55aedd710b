from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from site_api.config import Settings, get_settings
from site_api.llm.openai_client import (
    ChatCompletionError,
    EmptyCompletionError,
    request_chat_completion,
)
from site_api.llm.prompts import SystemPrompt, get_system_prompt
from site_api.models.chat import AssistResponse, ChatTranscript
from site_api.models.lead import ErrorResponse
from site_api.utils.http import (
    json_response,
    parse_json_body,
    preflight_response,
)
from site_api.utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["assistant"])
logger = get_logger(__name__)

ALLOW_HEADERS = ("Content-Type",)
FRIENDLY_ERROR = "Assistant is unavailable right now. Please try again soon."
NO_MESSAGES_ERROR = "Please include at least one message."
INVALID_MESSAGES_ERROR = "Please include a valid message."
UPSTREAM_UNREACHABLE_STATUS = 502


def _respond(status_code: int, body: dict) -> JSONResponse:
    return json_response(status_code, body, ALLOW_HEADERS)


def _upstream_status(exc: ChatCompletionError) -> int:
    if isinstance(exc, EmptyCompletionError):
        return 500
    status = exc.status_code
    if status is None or status < 400 or status > 599:
        return UPSTREAM_UNREACHABLE_STATUS
    return status


@router.options("/assist", include_in_schema=False)
def assist_preflight() -> Response:
    return preflight_response(ALLOW_HEADERS)


@router.post(
    "/assist",
    response_model=AssistResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def assist_endpoint(
    request: Request,
    settings: Settings = Depends(get_settings),
    system_prompt: SystemPrompt = Depends(get_system_prompt),
):
    """Relay the visitor's transcript to the chat-completion API behind a fixed system prompt."""
    if not settings.openai_api_key:
        logger.error("assist: missing OPENAI_API_KEY")
        return _respond(500, {"error": FRIENDLY_ERROR})
    if not system_prompt.available:
        logger.error("assist: services catalog unavailable (%s)", system_prompt.source)
        return _respond(500, {"error": FRIENDLY_ERROR})

    try:
        body = parse_json_body(await request.body())
        raw_messages = body.get("messages")
        if not isinstance(raw_messages, list) or not raw_messages:
            return _respond(400, {"error": NO_MESSAGES_ERROR})

        transcript = ChatTranscript.normalize(raw_messages)
        if not transcript.messages:
            return _respond(400, {"error": INVALID_MESSAGES_ERROR})

        reply = await run_in_threadpool(
            request_chat_completion, settings, system_prompt.text, transcript
        )
    except ChatCompletionError as exc:
        logger.error("assist: completion failed status=%s detail=%s", exc.status_code, exc.detail)
        return _respond(_upstream_status(exc), {"error": FRIENDLY_ERROR})
    except Exception:
        logger.exception("assist endpoint error")
        return _respond(500, {"error": FRIENDLY_ERROR})

    logger.info("assist: replied to transcript of %d messages", len(transcript.messages))
    return _respond(200, AssistResponse(message=reply).model_dump())
