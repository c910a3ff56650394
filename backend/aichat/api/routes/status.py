"""
status.py — GET /api/health  and  GET /api/model-status

/api/health is polled by the client's connection indicator every 30s.
/api/model-status reports which backends are configured; it never calls
the providers, so it is cheap enough to poll too.
"""

from fastapi import APIRouter

from aichat.services import chat_router

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/model-status")
async def model_status():
    """
    Response shape:
    {
      "primary":  {"provider": "openai", "model": "gpt-4o", "available": true},
      "fallback": {"provider": "gemini", "model": "gemini-1.5-flash", "available": false},
      "offline_fallback": true,
      "image":    {"model": "black-forest-labs/FLUX.1-dev", "available": true},
      "video":    {"model": "...", "available": true},
      "active":   "openai"
    }
    """
    return chat_router.model_status()
