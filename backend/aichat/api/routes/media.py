"""
media.py — POST /api/generate-image  and  POST /api/generate-video

Thin wrappers around services/media.py.  Parameter bounds mirror what the
hosted models accept; anything outside them is rejected with 400 before
the (slow) provider call.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from aichat.services import media

router = APIRouter(prefix="/api", tags=["media"])


class ImageGenerationRequest(BaseModel):
    prompt:              str   = Field(min_length=1, max_length=1000)
    seed:                int   = 0
    randomize_seed:      bool  = True
    width:               int   = Field(default=512, ge=256, le=1024)
    height:              int   = Field(default=512, ge=256, le=1024)
    guidance_scale:      float = Field(default=7.5, ge=0, le=20)
    num_inference_steps: int   = Field(default=20, ge=1, le=50)


class VideoGenerationRequest(BaseModel):
    prompt:              str = Field(min_length=1, max_length=1000)
    num_frames:          int = Field(default=16, ge=8, le=64)
    num_inference_steps: int = Field(default=25, ge=1, le=50)


@router.post("/generate-image")
async def generate_image(body: ImageGenerationRequest):
    image_url = await media.generate_image(**body.model_dump())
    return {"imageUrl": image_url}


@router.post("/generate-video")
async def generate_video(body: VideoGenerationRequest):
    video_url = await media.generate_video(**body.model_dump())
    return {"videoUrl": video_url}
