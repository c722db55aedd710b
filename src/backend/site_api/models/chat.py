from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]
ALLOWED_ROLES = ("user", "assistant")


class ChatMessage(BaseModel):
    role: Role
    content: str = Field(..., min_length=1)


class ChatTranscript(BaseModel):
    # Order is conversation order; the browser resends the whole history.
    messages: List[ChatMessage] = Field(default_factory=list)

    @classmethod
    def normalize(cls, raw_messages: Any) -> "ChatTranscript":
        """Keep only entries with an allowed role and non-blank string content."""
        if not isinstance(raw_messages, list):
            return cls()
        kept: List[ChatMessage] = []
        for entry in raw_messages:
            if not isinstance(entry, dict):
                continue
            role = entry.get("role")
            content = entry.get("content")
            if role not in ALLOWED_ROLES or not isinstance(content, str):
                continue
            content = content.strip()
            if not content:
                continue
            kept.append(ChatMessage(role=role, content=content))
        return cls(messages=kept)

    def as_payload(self) -> List[Dict[str, str]]:
        return [message.model_dump() for message in self.messages]


class AssistResponse(BaseModel):
    message: str
