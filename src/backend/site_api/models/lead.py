from typing import Any, Dict

from pydantic import BaseModel, Field, model_validator

from site_api.utils.text import clean_field, is_email

DEFAULT_SOURCE = "web"

MISSING_FIELDS_ERROR = "Please include your name, email, and message."
INVALID_EMAIL_ERROR = "Please use a valid email address."


class LeadValidationError(ValueError):
    """Raised when a contact-form payload fails validation; message is caller-safe."""


class LeadSubmission(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    message: str = Field(..., min_length=1)
    source: str = DEFAULT_SOURCE

    @model_validator(mode="before")
    @classmethod
    def _trim_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        trimmed = {key: clean_field(data.get(key)) for key in ("name", "email", "message")}
        trimmed["source"] = clean_field(data.get("source")) or DEFAULT_SOURCE
        return trimmed

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "LeadSubmission":
        """
        Validate a raw form payload.
        Required fields are checked before the email shape, matching the
        order the form reports errors in.
        """
        name = clean_field(payload.get("name"))
        email = clean_field(payload.get("email"))
        message = clean_field(payload.get("message"))
        if not name or not email or not message:
            raise LeadValidationError(MISSING_FIELDS_ERROR)
        if not is_email(email):
            raise LeadValidationError(INVALID_EMAIL_ERROR)
        return cls.model_validate(payload)

    def as_record(self) -> Dict[str, str]:
        return self.model_dump(include={"name", "email", "message", "source"})


class LeadAccepted(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    error: str
