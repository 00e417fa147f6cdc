import json
import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from backend.config import settings
from backend.services.errors import RequestError, TransientPollError
from backend.services.request_builder import GenerationRequest

logger = logging.getLogger(__name__)

# Failures raised by the SDK or by the transport underneath it.
_REMOTE_ERRORS = (genai_errors.APIError, httpx.HTTPError, OSError)


class GenAIClientError(RuntimeError):
    """Raised when the Gemini API client cannot be created."""


def describe_remote_error(exc: Exception) -> str:
    """Render an SDK error with its details as a JSON ``{"error": ...}`` object."""
    if not isinstance(exc, genai_errors.APIError):
        return str(exc) or exc.__class__.__name__

    payload = {
        "error": {
            "code": getattr(exc, "code", None),
            "status": getattr(exc, "status", None),
            "message": getattr(exc, "message", None),
        }
    }
    return f"{payload['error']['code']} {payload['error']['status']}. {json.dumps(payload)}"


class GenerationClient:
    def __init__(self, client: Any, model: str) -> None:
        self._client = client
        self.model = model

    def submit(self, request: GenerationRequest):
        config = types.GenerateVideosConfig(
            number_of_videos=1,
            aspect_ratio=request.aspect_ratio.value,
        )
        image = None
        if request.reference_image is not None:
            image = types.Image(
                image_bytes=request.reference_image.to_bytes(),
                mime_type=request.reference_image.mime_type,
            )

        try:
            operation = self._client.models.generate_videos(
                model=request.model or self.model,
                prompt=request.prompt,
                image=image,
                config=config,
            )
        except _REMOTE_ERRORS as exc:
            logger.exception("Failed to submit video generation request")
            raise RequestError(describe_remote_error(exc)) from exc

        logger.info("Submitted video generation operation %s", getattr(operation, "name", "<unnamed>"))
        return operation

    def poll(self, operation):
        try:
            return self._client.operations.get(operation)
        except Exception as exc:
            raise TransientPollError(describe_remote_error(exc)) from exc


_generation_client: Optional[GenerationClient] = None


def _create_client() -> GenerationClient:
    try:
        client = genai.Client(api_key=settings.api_key)
    except ValueError as exc:
        logger.exception("Failed to create Gemini API client")
        raise GenAIClientError("Unable to create Gemini API client. Check GEMINI_API_KEY.") from exc
    return GenerationClient(client, settings.veo_model_id)


def get_generation_client() -> GenerationClient:
    global _generation_client
    if _generation_client is None:
        _generation_client = _create_client()
    return _generation_client
