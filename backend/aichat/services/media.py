"""
media.py — Image and video generation via the Hugging Face Inference API.

Both endpoints are plain HTTPS POSTs that answer with raw media bytes
(image/jpeg, image/png, video/mp4, ...).  The bytes are returned to the
browser as a base64 data URL so the client can drop it straight into an
<img> / <video> tag without a second request.

HF FREE TIER NOTES:
  The model may be "cold" after inactivity; the API returns HTTP 503 with
  {"error": "Model is currently loading", "estimated_time": ...}.  We retry
  up to MAX_ATTEMPTS times, waiting the estimated time (capped) in between.
"""

import asyncio
import base64
import logging

import httpx

from aichat.core.config import settings
from aichat.core.errors import ProviderError, ProviderNotConfigured

logger = logging.getLogger(__name__)

PROVIDER = "huggingface"

MAX_ATTEMPTS = 3
MAX_WAIT_SECONDS = 20.0

# Replaced in tests so cold-start retries don't actually wait
_sleep = asyncio.sleep


def is_available() -> bool:
    return bool(settings.HF_TOKEN.strip())


def _model_url(model: str) -> str:
    return f"https://router.huggingface.co/hf-inference/models/{model}"


def _to_data_url(content: bytes, content_type: str) -> str:
    mime = content_type.split(";")[0].strip() or "application/octet-stream"
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"


def _is_loading(response: httpx.Response) -> tuple[bool, float]:
    """(is the model warming up?, seconds HF suggests we wait)"""
    if response.status_code != 503:
        return False, 0.0
    try:
        body = response.json()
    except ValueError:
        return False, 0.0
    if "loading" not in str(body).lower():
        return False, 0.0
    wait = body.get("estimated_time", MAX_WAIT_SECONDS) if isinstance(body, dict) else MAX_WAIT_SECONDS
    return True, min(float(wait), MAX_WAIT_SECONDS)


async def _call_hf_api(
    model: str,
    payload: dict,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    POST payload to a hosted model and return the media as a data URL.

    Raises:
        ProviderNotConfigured: if HF_TOKEN is empty.
        ProviderError:         on HTTP errors, non-media replies, or if the
                               model is still loading after all retries.
    """
    if not is_available():
        raise ProviderNotConfigured(PROVIDER, "Hugging Face token (HF_TOKEN) is missing.")

    headers = {"Authorization": f"Bearer {settings.HF_TOKEN}"}

    async with httpx.AsyncClient(timeout=settings.HF_TIMEOUT, transport=transport) as client:
        for attempt in range(MAX_ATTEMPTS):
            try:
                response = await client.post(_model_url(model), headers=headers, json=payload)
            except httpx.HTTPError as exc:
                logger.warning("Request to %s failed: %s", model, exc)
                raise ProviderError(PROVIDER, f"Could not reach {model}: {exc}") from exc

            loading, wait = _is_loading(response)
            if loading:
                logger.info("%s is loading, waiting %.0fs (attempt %d/%d)",
                            model, wait, attempt + 1, MAX_ATTEMPTS)
                await _sleep(wait)
                continue

            if response.is_error:
                logger.warning("%s answered HTTP %d: %s", model, response.status_code, response.text[:200])
                raise ProviderError(
                    PROVIDER,
                    f"{model} returned HTTP {response.status_code}.",
                    status_code=502,
                )

            content_type = response.headers.get("content-type", "")
            if content_type.startswith("application/json"):
                # HF reports some failures as 200 + JSON error body
                raise ProviderError(PROVIDER, f"{model} did not return media: {response.text[:200]}")

            return _to_data_url(response.content, content_type)

    raise ProviderError(
        PROVIDER,
        f"{model} is still loading after {MAX_ATTEMPTS} attempts: try again in a moment.",
        status_code=503,
    )


async def generate_image(
    prompt: str,
    seed: int = 0,
    randomize_seed: bool = True,
    width: int = 512,
    height: int = 512,
    guidance_scale: float = 7.5,
    num_inference_steps: int = 20,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Generate an image with the configured text-to-image model; returns a data URL."""
    parameters = {
        "width":               width,
        "height":              height,
        "guidance_scale":      guidance_scale,
        "num_inference_steps": num_inference_steps,
    }
    if not randomize_seed:
        parameters["seed"] = seed

    return await _call_hf_api(
        settings.IMAGE_MODEL,
        {"inputs": prompt, "parameters": parameters},
        transport=transport,
    )


async def generate_video(
    prompt: str,
    num_frames: int = 16,
    num_inference_steps: int = 25,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Generate a short clip with the configured text-to-video model; returns a data URL."""
    return await _call_hf_api(
        settings.VIDEO_MODEL,
        {
            "inputs": prompt,
            "parameters": {
                "num_frames":          num_frames,
                "num_inference_steps": num_inference_steps,
            },
        },
        transport=transport,
    )
