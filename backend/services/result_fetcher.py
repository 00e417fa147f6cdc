import json
import logging
from pathlib import Path
from typing import Optional

import httpx

from backend.services.errors import DownloadError, MissingResultError

logger = logging.getLogger(__name__)

MISSING_RESULT_MESSAGE = "Video generation failed: No download link found in the final response."


def extract_video_uri(operation) -> str:
    response = getattr(operation, "response", None)
    videos = getattr(response, "generated_videos", None) or []
    video = getattr(videos[0], "video", None) if videos else None
    uri = getattr(video, "uri", None)
    if uri:
        return uri

    message = MISSING_RESULT_MESSAGE
    error = getattr(operation, "error", None)
    if error:
        message = f"{message} {json.dumps({'error': error}, default=str)}"
    raise MissingResultError(message)


def fetch_video(
    operation,
    api_key: str,
    destination: Path,
    http_client: Optional[httpx.Client] = None,
    timeout: float = 120.0,
) -> Path:
    uri = extract_video_uri(operation)
    client = http_client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        response = client.get(httpx.URL(uri).copy_merge_params({"key": api_key}))
    except httpx.HTTPError as exc:
        raise DownloadError(f"Failed to download video: {exc.__class__.__name__}") from exc
    finally:
        if http_client is None:
            client.close()

    if not response.is_success:
        body = response.text
        raise DownloadError(
            f"Failed to download video. Status: {response.status_code}. {body}",
            status_code=response.status_code,
            body=body,
        )

    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(response.content)
    logger.info("Downloaded %d bytes of video to %s", len(response.content), destination)
    return destination
