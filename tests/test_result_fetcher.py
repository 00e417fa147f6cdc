import httpx
import pytest

from conftest import make_operation

from backend.services.errors import DownloadError, MissingResultError
from backend.services.result_fetcher import MISSING_RESULT_MESSAGE, extract_video_uri, fetch_video


def _http(handler):
    requests = []

    def record(request):
        requests.append(request)
        return handler(request)

    return httpx.Client(transport=httpx.MockTransport(record)), requests


def test_missing_uri_fails_without_fetching(tmp_path):
    client, requests = _http(lambda r: httpx.Response(200, content=b"video"))
    with pytest.raises(MissingResultError, match="No download link"):
        fetch_video(make_operation(done=True), "k", tmp_path / "v.mp4", http_client=client)
    assert requests == []
    assert not (tmp_path / "v.mp4").exists()


def test_operation_error_is_attached_to_missing_result():
    operation = make_operation(done=True, error={"code": 3, "message": "Unsafe prompt"})
    with pytest.raises(MissingResultError) as excinfo:
        extract_video_uri(operation)
    assert str(excinfo.value).startswith(MISSING_RESULT_MESSAGE)
    assert "Unsafe prompt" in str(excinfo.value)


def test_download_appends_key_and_writes_file(tmp_path):
    client, requests = _http(lambda r: httpx.Response(200, content=b"mp4-bytes"))
    operation = make_operation(done=True, uri="https://example.com/files/abc:download?alt=media")

    path = fetch_video(operation, "secret", tmp_path / "out" / "v.mp4", http_client=client)

    assert path.read_bytes() == b"mp4-bytes"
    assert requests[0].url.params["alt"] == "media"
    assert requests[0].url.params["key"] == "secret"


def test_http_failure_carries_status_and_body(tmp_path):
    client, _ = _http(lambda r: httpx.Response(403, text="forbidden"))
    operation = make_operation(done=True, uri="https://example.com/v")

    with pytest.raises(DownloadError) as excinfo:
        fetch_video(operation, "k", tmp_path / "v.mp4", http_client=client)

    assert excinfo.value.status_code == 403
    assert excinfo.value.body == "forbidden"
    assert str(excinfo.value) == "Failed to download video. Status: 403. forbidden"


def test_transport_failure_does_not_leak_the_url(tmp_path):
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    client, _ = _http(boom)
    operation = make_operation(done=True, uri="https://example.com/v")

    with pytest.raises(DownloadError) as excinfo:
        fetch_video(operation, "secret", tmp_path / "v.mp4", http_client=client)
    assert "secret" not in str(excinfo.value)
    assert excinfo.value.status_code is None
