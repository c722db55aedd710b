from fastapi import APIRouter, Depends

from site_api.config import Settings, get_settings
from site_api.llm.prompts import SystemPrompt, get_system_prompt

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
def health_check(
    settings: Settings = Depends(get_settings),
    system_prompt: SystemPrompt = Depends(get_system_prompt),
):
    return {
        "status": "ok",
        "lead_intake": {"configured": not settings.missing_lead_settings()},
        "assistant": {
            "configured": bool(settings.openai_api_key),
            "catalog_loaded": system_prompt.available,
        },
    }
