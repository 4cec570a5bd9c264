"""FastAPI application entrypoint."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.adapters.gotrue import identity
from app.config import settings
from app.database import init_db
from app.errors import ClawConError, RateLimitedError, ValidationError
from app.routers import bot_keys, webhook

# ── Logging setup ────────────────────────────────────────────────────
_log_level = os.environ.get("CLAWCON_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
# aiosqlite debug lines print bound parameters (ciphertext, key hashes)
logging.getLogger("aiosqlite").setLevel(logging.INFO)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    if not settings.bot_key_enc_key:
        logger.warning("CLAWCON_BOT_KEY_ENC_KEY is not set; bot key endpoints will fail")

    yield

    # Shutdown
    await identity.close()


app = FastAPI(
    title="ClawCon",
    description="Demo and topic submissions, with bot API keys for automated agents",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClawConError)
async def clawcon_error_handler(request: Request, exc: ClawConError):
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


def describe_validation_errors(errors) -> str:
    """One-line summary of pydantic request errors, e.g. ``title: Value error, must not be blank``."""
    if any(err.get("type") == "json_invalid" for err in errors):
        return "Invalid JSON payload."
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid payload: " + "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return await clawcon_error_handler(request, ValidationError(describe_validation_errors(exc.errors())))


# Mount routers
app.include_router(bot_keys.router, prefix="/api/bot-key", tags=["bot-key"])
app.include_router(webhook.router, prefix="/api/webhook", tags=["webhook"])


@app.get("/health")
async def health():
    return {"status": "ok", "service": "clawcon"}
