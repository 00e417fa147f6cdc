import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, File, Form, HTTPException, Response, UploadFile

from backend.config import settings
from backend.models.schemas import DEFAULT_ASPECT_RATIO, JobStatusResponse, StudioStateResponse, VideoJobResponse
from backend.services import video_job_service
from backend.services.errors import ValidationError
from backend.services.image_encoder import encode_image
from backend.services.request_builder import build_generation_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Browsers send this for a File whose type they could not determine.
_UNDECLARED_CONTENT_TYPES = {"", "application/octet-stream"}


def _declared_image_type(upload: UploadFile) -> Optional[str]:
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type in _UNDECLARED_CONTENT_TYPES:
        return None
    if not content_type.startswith("image/"):
        raise ValidationError("Reference image must be a PNG, JPG, or WEBP image.")
    return content_type


@router.post("/generate-video", response_model=VideoJobResponse)
async def generate_video(
    background_tasks: BackgroundTasks,
    prompt: str = Form(""),
    voice_text: str = Form(""),
    watermark: str = Form(""),
    aspect_ratio: str = Form(DEFAULT_ASPECT_RATIO.value),
    reference_image: Optional[UploadFile] = File(None),
):
    if len(prompt) > settings.prompt_char_limit:
        raise ValidationError(f"Prompt too long. Maximum {settings.prompt_char_limit} characters.")

    image = None
    if reference_image is not None and reference_image.filename:
        content_type = _declared_image_type(reference_image)
        data = await reference_image.read()
        image = encode_image(data, reference_image.filename, content_type)

    request = build_generation_request(
        prompt,
        model=settings.veo_model_id,
        aspect_ratio=aspect_ratio,
        voice_text=voice_text,
        watermark_text=watermark,
        reference_image=image,
    )
    job = video_job_service.start_video_job(request)

    background_tasks.add_task(video_job_service.run_video_job, job.job_id)
    return VideoJobResponse(job_id=job.job_id, status=job.status, loading_message=job.loading_message)


@router.get("/video-status/{job_id}", response_model=JobStatusResponse)
def get_video_status(job_id: str):
    return JobStatusResponse(**video_job_service.get_job_status(job_id))


def _state_response() -> StudioStateResponse:
    state = video_job_service.get_state()
    return StudioStateResponse(
        prompt=state.prompt,
        voice_text=state.voice_text,
        watermark=state.watermark,
        aspect_ratio=state.aspect_ratio,
        has_reference_image=state.reference_image is not None,
        is_loading=state.is_loading,
        loading_message=state.loading_message,
        video_url=state.video_url,
        error=state.error,
        job_id=state.job_id,
    )


@router.get("/state", response_model=StudioStateResponse)
def get_state():
    return _state_response()


@router.get("/state/reference-image")
def get_reference_image():
    image = video_job_service.get_state().reference_image
    if image is None:
        raise HTTPException(status_code=404, detail="No reference image on the form.")
    return Response(content=image.to_bytes(), media_type=image.mime_type)


@router.post("/start-over", response_model=StudioStateResponse)
def start_over():
    video_job_service.start_over()
    return _state_response()


@router.get("/health")
def health_check():
    return {"status": "ok"}
