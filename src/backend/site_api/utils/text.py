import re
import unicodedata
from typing import Any

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CONTROL_CHAR_RE = re.compile(r"[\u0000-\u001f\u007f-\u009f]")
WHITESPACE_RE = re.compile(r"\s+")

_HTML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#039;"),
)

HTML_FONT_STACK = "system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial"


def clean_field(value: Any) -> str:
    """Trim string input; anything that is not a string counts as empty."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value or ""))


def escape_html(value: Any) -> str:
    text = "" if value is None else str(value)
    # "&" goes first so the other entities are not escaped twice
    for char, entity in _HTML_ESCAPES:
        text = text.replace(char, entity)
    return text


def html_wrap(inner: str) -> str:
    return (
        f'<div style="font-family: {HTML_FONT_STACK}; line-height:1.5;">'
        f"{inner}"
        "</div>"
    )


def normalize_text(value: Any) -> str:
    """Collapse whitespace and control characters to single spaces, for header values."""
    if not value:
        return ""
    text = unicodedata.normalize("NFC", str(value))
    text = CONTROL_CHAR_RE.sub(" ", text)
    text = WHITESPACE_RE.sub(" ", text)
    return text.strip()
