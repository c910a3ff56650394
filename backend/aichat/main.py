"""
main.py — FastAPI application entry point.

WHAT THIS FILE DOES:
  1. Configures logging.
  2. Creates the FastAPI app instance; its lifespan creates the tables and
     the built-in "default" conversation.
  3. Adds CORS (so the React frontend can call the API with cookies) and
     signed-cookie sessions.
  4. Registers exception handlers so every error response has the same
     {"message": "..."} shape the frontend reads.
  5. Registers all API routers.

HOW TO RUN:
  cd backend
  source .venv/bin/activate
  uvicorn aichat.main:app --reload       # dev mode: reloads on file changes
  uvicorn aichat.main:app --port 8000    # production-style (no reload)
"""

import logging
import secrets
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from aichat.api.routes import auth, chat, conversations, media, status, users
from aichat.core.config import settings
from aichat.core.database import init_db
from aichat.core.errors import ProviderError

# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
# Lifespan
# ------------------------------------------------------------------ #
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting AI Chat API...")
    await init_db()
    yield
    logger.info("Shutting down AI Chat API...")


# ------------------------------------------------------------------ #
# App instance
# ------------------------------------------------------------------ #
app = FastAPI(
    title="AI Chat API",
    description=(
        "Chat backend for an AI assistant. Persists conversations, authenticates "
        "users and routes each turn to OpenAI, with Gemini and canned replies as fallbacks."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# ------------------------------------------------------------------ #
# Middleware
# ------------------------------------------------------------------ #
_session_secret = settings.SESSION_SECRET
if not _session_secret:
    logger.warning("SESSION_SECRET not set; using a random per-process secret (sessions reset on restart)")
    _session_secret = secrets.token_hex(32)

app.add_middleware(
    SessionMiddleware,
    secret_key=_session_secret,
    max_age=settings.SESSION_MAX_AGE,
    same_site="none" if settings.COOKIE_SECURE else "lax",
    https_only=settings.COOKIE_SECURE,
)

# allow_credentials – the session cookie must travel with API calls
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------------ #
# Error responses: always {"message": ...}
# ------------------------------------------------------------------ #
# Friendlier wording for body-validation failures on specific routes
VALIDATION_MESSAGES = {
    "/api/chat":          "Invalid chat data format.",
    "/api/conversations": "Invalid conversation data.",
    "/api/user/profile":  "Invalid profile data.",
}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = VALIDATION_MESSAGES.get(request.url.path.rstrip("/"), "Invalid request data.")
    return JSONResponse(
        status_code=400,
        content={"message": message, "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(ProviderError)
async def provider_exception_handler(request: Request, exc: ProviderError):
    logger.error("%s failed on %s: %s", exc.provider, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


# ------------------------------------------------------------------ #
# Routers
# ------------------------------------------------------------------ #
app.include_router(status.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(conversations.router)
app.include_router(chat.router)
app.include_router(media.router)
