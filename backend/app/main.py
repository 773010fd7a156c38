from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.errors import install_error_handlers
from app.logging_setup import configure_logging
from app.routes.system import router as system_router
from app.routes.competitions import router as competitions_router
from app.routes.users import router as users_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha,
             github_org=settings.github_org or None, github_token_set=bool(settings.github_admin_token))
    yield
    # Shutdown
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for coding competitions, judging and pull request payouts",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" or not settings.cors_origins else settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

# Include routers
app.include_router(system_router)
app.include_router(competitions_router)
app.include_router(users_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid, method=request.method, path=request.url.path)
    try:
        response: Response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response
