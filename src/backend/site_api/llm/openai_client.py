import json
from typing import Any, Callable, Dict, List, Optional

import requests
from requests import RequestException

from site_api.config import Settings
from site_api.models.chat import ChatTranscript
from site_api.utils.logger import get_logger

logger = get_logger(__name__)


class ChatCompletionError(RuntimeError):
    """Represents a failed call against the chat-completion API."""

    def __init__(self, detail: str | None = None, status_code: int | None = None):
        detail = detail or "Chat completion request failed without details."
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class EmptyCompletionError(ChatCompletionError):
    """The API answered successfully but no reply text could be extracted."""


def _clean(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return ""


def _from_choice_message(data: Dict[str, Any]) -> str:
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    return _clean(message.get("content"))


def _from_output_text(data: Dict[str, Any]) -> str:
    return _clean(data.get("output_text"))


def _from_output_blocks(data: Dict[str, Any]) -> str:
    output = data.get("output")
    if not isinstance(output, list):
        return ""
    for item in output:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for block in content:
            if isinstance(block, dict):
                text = _clean(block.get("text"))
                if text:
                    return text
    return ""


# Tried in order; the first non-empty text wins.
REPLY_EXTRACTORS: List[Callable[[Dict[str, Any]], str]] = [
    _from_choice_message,
    _from_output_text,
    _from_output_blocks,
]


def extract_reply_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    for extractor in REPLY_EXTRACTORS:
        text = extractor(data)
        if text:
            return text
    return ""


def _payload_brief(data: Any) -> str:
    try:
        return json.dumps(data, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(data)


def _read_json(response: requests.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


def build_payload(settings: Settings, system_prompt: str, transcript: ChatTranscript) -> Dict[str, Any]:
    return {
        "model": settings.openai_model,
        "messages": [{"role": "system", "content": system_prompt}, *transcript.as_payload()],
        "temperature": settings.openai_temperature,
    }


def request_chat_completion(
    settings: Settings,
    system_prompt: str,
    transcript: ChatTranscript,
) -> str:
    """Send one completion request and return the reply text."""
    payload = build_payload(settings, system_prompt, transcript)
    try:
        response = requests.post(
            settings.openai_api_url,
            json=payload,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {settings.openai_api_key}",
            },
            timeout=settings.openai_timeout,
        )
    except RequestException as exc:
        logger.warning("Network failure when calling chat completion API: %s", exc)
        raise ChatCompletionError(str(exc)) from exc

    data = _read_json(response)
    if not response.ok:
        logger.error(
            "Chat completion API returned %s; detail=%s",
            response.status_code,
            _payload_brief(data) if data is not None else response.text.strip(),
        )
        raise ChatCompletionError(
            f"Chat completion API returned {response.status_code}",
            status_code=response.status_code,
        )

    text = extract_reply_text(data)
    if not text:
        logger.error("Chat completion response missing text payload: %s", _payload_brief(data))
        raise EmptyCompletionError("Chat completion replied without text.")
    return text
