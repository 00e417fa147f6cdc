import os
import tempfile
from types import SimpleNamespace

import pytest

os.environ.setdefault("GEMINI_API_KEY", "test-secret-key")
os.environ.setdefault("OUTPUT_LOCAL_DIR", tempfile.mkdtemp(prefix="veo-videos-"))
os.environ.setdefault("POLL_INTERVAL_SECONDS", "0")


def make_operation(done=False, uri=None, error=None, name="operations/test"):
    response = None
    if uri is not None:
        response = SimpleNamespace(generated_videos=[SimpleNamespace(video=SimpleNamespace(uri=uri))])
    elif done:
        response = SimpleNamespace(generated_videos=[])
    return SimpleNamespace(name=name, done=done, response=response, error=error)


class FakeGenerationClient:
    """Stands in for GenerationClient; ``poll_results`` items are returned or raised in order."""

    def __init__(self, poll_results=(), submit_result=None, submit_error=None):
        self.poll_results = list(poll_results)
        self.submit_result = submit_result if submit_result is not None else make_operation()
        self.submit_error = submit_error
        self.submitted = []
        self.poll_calls = 0

    def submit(self, request):
        self.submitted.append(request)
        if self.submit_error is not None:
            raise self.submit_error
        return self.submit_result

    def poll(self, operation):
        self.poll_calls += 1
        result = self.poll_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_client_factory():
    return FakeGenerationClient


@pytest.fixture(autouse=True)
def reset_job_service():
    from backend.services import video_job_service

    video_job_service._JOB_STORE.clear()
    video_job_service._PENDING_REQUESTS.clear()
    video_job_service._STATE.reset()
    yield
    video_job_service._JOB_STORE.clear()
    video_job_service._PENDING_REQUESTS.clear()
    video_job_service._STATE.reset()
