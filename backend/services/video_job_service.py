import logging
import threading
import uuid
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Dict, Optional

from backend.config import settings
from backend.models.schemas import DEFAULT_ASPECT_RATIO, AspectRatio
from backend.services.error_classifier import classify_error
from backend.services.errors import GenerationError, GenerationInProgressError, JobNotFoundError, UnclassifiedError
from backend.services.genai_client import get_generation_client
from backend.services.image_encoder import EncodedImage
from backend.services.polling import DOWNLOADING_MESSAGE, LOADING_MESSAGES, PollingLoop
from backend.services.request_builder import GenerationRequest
from backend.services.result_fetcher import fetch_video

logger = logging.getLogger(__name__)


@dataclass
class VideoJob:
    job_id: str
    status: str = "pending"
    loading_message: Optional[str] = None
    detail: Optional[str] = None
    video_url: Optional[str] = None
    local_path: Optional[str] = None


@dataclass
class StudioState:
    """What the form currently shows. ``reset`` is the "start over" action."""

    default_watermark: str = ""
    prompt: str = ""
    voice_text: str = ""
    reference_image: Optional[EncodedImage] = None
    watermark: Optional[str] = None
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    is_loading: bool = False
    loading_message: str = ""
    video_url: Optional[str] = None
    error: Optional[str] = None
    job_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.watermark is None:
            self.watermark = self.default_watermark

    def reset(self) -> None:
        fresh = StudioState(default_watermark=self.default_watermark)
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))


_JOB_STORE: Dict[str, VideoJob] = {}
_PENDING_REQUESTS: Dict[str, GenerationRequest] = {}
_STATE = StudioState(default_watermark=settings.default_watermark)
_STATE_LOCK = threading.Lock()


def get_state() -> StudioState:
    """Copy of the form state, taken under the lock."""
    with _STATE_LOCK:
        return replace(_STATE)


def start_over() -> StudioState:
    with _STATE_LOCK:
        if _STATE.is_loading:
            raise GenerationInProgressError("A video is still being generated.")
        _STATE.reset()
        snapshot = replace(_STATE)
    logger.info("Studio state reset")
    return snapshot


def start_video_job(request: GenerationRequest) -> VideoJob:
    with _STATE_LOCK:
        if _STATE.is_loading:
            raise GenerationInProgressError("A video is already being generated. Please wait for it to finish.")

        previous = _JOB_STORE.get(_STATE.job_id) if _STATE.job_id else None
        job = VideoJob(job_id=str(uuid.uuid4()), loading_message=LOADING_MESSAGES[0])
        _JOB_STORE[job.job_id] = job
        _PENDING_REQUESTS[job.job_id] = request
        _prune_finished_jobs(keep=job.job_id)

        _STATE.prompt = request.raw_prompt
        _STATE.voice_text = request.voice_text
        _STATE.watermark = request.watermark_text
        _STATE.aspect_ratio = request.aspect_ratio
        _STATE.reference_image = request.reference_image
        _STATE.is_loading = True
        _STATE.loading_message = job.loading_message
        _STATE.video_url = None
        _STATE.error = None
        _STATE.job_id = job.job_id

    if previous is not None:
        _discard_video(previous)
    logger.info("Queued video job %s", job.job_id)
    return job


def run_video_job(job_id: str) -> None:
    job = _JOB_STORE.get(job_id)
    request = _PENDING_REQUESTS.pop(job_id, None)
    if job is None or request is None:
        raise JobNotFoundError(f"Job {job_id} not found")

    def publish(message: str) -> None:
        job.loading_message = message
        with _STATE_LOCK:
            if _STATE.job_id == job_id:
                _STATE.loading_message = message

    try:
        client = get_generation_client()
        operation = client.submit(request)
        job.status = "in_progress"
        operation = PollingLoop(
            client,
            operation,
            on_message=publish,
            interval_seconds=settings.poll_interval_seconds,
            max_consecutive_failures=settings.poll_max_consecutive_failures,
        ).run()

        publish(DOWNLOADING_MESSAGE)
        local_path = Path(settings.output_local_dir) / f"{job_id}.mp4"
        fetch_video(operation, settings.api_key, local_path, timeout=settings.download_timeout_seconds)
    except Exception as exc:
        logger.exception("Video job %s failed", job_id)
        if not isinstance(exc, GenerationError):
            exc = UnclassifiedError(str(exc))
        job.status = "failed"
        job.detail = classify_error(str(exc), secret=settings.api_key)
    else:
        job.status = "completed"
        job.local_path = str(local_path)
        job.video_url = f"/videos/{local_path.name}"
        job.detail = "Video generation completed."
        logger.info("Video for job %s stored at %s", job_id, job.local_path)
    finally:
        with _STATE_LOCK:
            if _STATE.job_id == job_id:
                _STATE.is_loading = False
                _STATE.video_url = job.video_url
                _STATE.error = job.detail if job.status == "failed" else None


def get_job_status(job_id: str) -> Dict[str, Optional[str]]:
    job = _JOB_STORE.get(job_id)
    if not job:
        raise JobNotFoundError(f"Job {job_id} not found")
    return _serialize_job(job)


def _discard_video(job: VideoJob) -> None:
    if not job.local_path:
        return
    try:
        Path(job.local_path).unlink(missing_ok=True)
    except OSError:
        logger.warning("Failed to delete superseded video %s", job.local_path)
    job.local_path = None
    job.video_url = None


def _serialize_job(job: VideoJob) -> Dict[str, Optional[str]]:
    return {
        "job_id": job.job_id,
        "status": job.status,
        "loading_message": job.loading_message,
        "detail": job.detail,
        "video_url": job.video_url,
    }


def _prune_finished_jobs(keep: str) -> None:
    """Drops the oldest finished jobs once the store exceeds ``JOB_HISTORY_LIMIT``."""
    finished = [job_id for job_id, job in _JOB_STORE.items() if job_id != keep and job.status in ("completed", "failed")]
    excess = len(_JOB_STORE) - settings.job_history_limit
    for job_id in finished[:max(excess, 0)]:
        del _JOB_STORE[job_id]
