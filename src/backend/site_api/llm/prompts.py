from dataclasses import dataclass
from pathlib import Path

from fastapi import Request

from site_api.utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_INSTRUCTIONS = " ".join(
    [
        "You are MacDonald Automation's assistant.",
        "We are software developers specializing in automation (custom apps, integrations, workflows). "
        "Do not claim we avoid software; respond confidently within our capabilities.",
        "Answer only questions related to the company's automation services.",
        "Politely refuse anything unrelated.",
        "Format every reply in Markdown so it is easy to read "
        "(use headings, bullet lists, and code blocks when helpful).",
        "Reference the detailed services catalog below when answering:",
    ]
)


@dataclass(frozen=True)
class SystemPrompt:
    text: str
    available: bool
    source: str

    @classmethod
    def unavailable(cls, source: str) -> "SystemPrompt":
        return cls(text="", available=False, source=source)


def load_system_prompt(path: Path) -> SystemPrompt:
    """
    Build the assistant system prompt from the fixed instructions plus the
    services catalog. A catalog that cannot be read marks the prompt unavailable.
    """
    source = str(path)
    try:
        catalog = Path(path).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        logger.exception("Unable to load services catalog from %s", source)
        return SystemPrompt.unavailable(source)
    if not catalog:
        logger.error("Services catalog at %s is empty", source)
        return SystemPrompt.unavailable(source)

    logger.info("Loaded services catalog from %s (%d chars)", source, len(catalog))
    return SystemPrompt(text=f"{SYSTEM_INSTRUCTIONS}\n\n{catalog}", available=True, source=source)


def get_system_prompt(request: Request) -> SystemPrompt:
    """Return the prompt loaded at startup; unavailable if startup never ran."""
    prompt = getattr(request.app.state, "system_prompt", None)
    if prompt is None:
        return SystemPrompt.unavailable("<not loaded>")
    return prompt
