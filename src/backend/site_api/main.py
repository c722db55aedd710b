from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from site_api.config import get_settings
from site_api.llm.prompts import load_system_prompt
from site_api.routes import assist, health, lead
from site_api.utils.http import method_not_allowed
from site_api.utils.logger import get_logger

logger = get_logger(__name__)

GENERIC_ERROR = "We could not process your request right now. Please try again shortly."

# POST-only endpoints and the CORS request headers each one allows.
POST_ONLY_PATHS = {
    "/api/lead": lead.ALLOW_HEADERS,
    "/api/assist": assist.ALLOW_HEADERS,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Read once per process; request handlers only read app.state.system_prompt.
    settings = get_settings()
    app.state.system_prompt = load_system_prompt(settings.services_catalog_path)
    yield


app = FastAPI(title="Automation Site API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def method_guard_handler(request: Request, exc: StarletteHTTPException):
    allow_headers = POST_ONLY_PATHS.get(request.url.path.rstrip("/"))
    if exc.status_code == 405 and allow_headers is not None:
        return method_not_allowed(allow_headers)
    return await http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


app.include_router(health.router)
app.include_router(lead.router)
app.include_router(assist.router)


def serve() -> None:
    import uvicorn

    uvicorn.run("site_api.main:app", host="0.0.0.0", port=8000)
