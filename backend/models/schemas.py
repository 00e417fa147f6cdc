from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AspectRatio(str, Enum):
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"


DEFAULT_ASPECT_RATIO = AspectRatio.LANDSCAPE


class VideoJobResponse(BaseModel):
    job_id: str
    status: str
    loading_message: Optional[str] = None


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    loading_message: Optional[str] = None
    detail: Optional[str] = None
    video_url: Optional[str] = None


class StudioStateResponse(BaseModel):
    prompt: str
    voice_text: str
    watermark: str
    aspect_ratio: AspectRatio
    has_reference_image: bool
    is_loading: bool
    loading_message: str
    video_url: Optional[str] = None
    error: Optional[str] = None
    job_id: Optional[str] = None
