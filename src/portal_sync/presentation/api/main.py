from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from portal_sync.config import settings
from portal_sync.domain.errors import ConfigMissing, LoginFailed, LoginTimeout, SessionExpired
from portal_sync.logging_setup import configure_logging
from portal_sync.presentation.api.dependencies import registry
from portal_sync.presentation.api.routes.auth import router as auth_router
from portal_sync.presentation.api.routes.health import router as health_router

configure_logging(settings.log_level)

app = FastAPI(title="Portal Sync", version="0.3.0")
app.include_router(health_router)
app.include_router(auth_router)


@app.exception_handler(ConfigMissing)
def config_missing(_request: Request, exc: ConfigMissing) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": str(exc)})


@app.exception_handler(LoginFailed)
def login_failed(_request: Request, exc: LoginFailed) -> JSONResponse:
    code = 504 if isinstance(exc, LoginTimeout) else 502
    return JSONResponse(status_code=code, content={"error": exc.reason})


@app.exception_handler(SessionExpired)
def session_expired(_request: Request, exc: SessionExpired) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.get("/metrics")
def metrics() -> Response:  # type: ignore[misc]
    data = generate_latest(registry)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
