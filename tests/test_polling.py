from types import SimpleNamespace

import pytest

from conftest import FakeGenerationClient, make_operation

from backend.services.errors import PollLimitExceededError, TransientPollError
from backend.services.genai_client import GenerationClient
from backend.services.polling import LOADING_MESSAGES, PollingLoop, PollState


def _loop(client, **kwargs):
    sleeps = []
    messages = []
    loop = PollingLoop(
        client,
        make_operation(),
        on_message=messages.append,
        interval_seconds=10,
        sleep=sleeps.append,
        **kwargs,
    )
    return loop, sleeps, messages


def test_single_poll_failure_does_not_stop_the_loop():
    done = make_operation(done=True, uri="https://example.com/v")
    client = FakeGenerationClient(poll_results=[TransientPollError("503 UNAVAILABLE"), done])
    loop, sleeps, _ = _loop(client)

    assert loop.run() is done
    assert loop.state is PollState.DONE
    assert client.poll_calls == 2
    assert sleeps == [10, 10]


def test_one_poll_per_tick():
    client = FakeGenerationClient(poll_results=[make_operation(), make_operation(), make_operation(done=True)])
    loop, sleeps, _ = _loop(client)

    assert loop.tick() is PollState.IN_PROGRESS
    assert client.poll_calls == 1
    assert loop.tick() is PollState.IN_PROGRESS
    assert client.poll_calls == 2
    assert loop.tick() is PollState.DONE
    assert client.poll_calls == 3
    assert len(sleeps) == 3


def test_message_index_wraps_after_n_ticks():
    n = len(LOADING_MESSAGES)
    client = FakeGenerationClient(poll_results=[make_operation() for _ in range(n)])
    loop, _, messages = _loop(client)

    assert loop.current_message == LOADING_MESSAGES[0]
    for _ in range(n):
        loop.tick()
    assert loop.current_message == LOADING_MESSAGES[0]
    assert messages == list(LOADING_MESSAGES[1:]) + [LOADING_MESSAGES[0]]


def test_consecutive_failure_cap_aborts():
    client = FakeGenerationClient(poll_results=[TransientPollError("down")] * 3)
    loop, _, _ = _loop(client, max_consecutive_failures=3)

    with pytest.raises(PollLimitExceededError):
        loop.run()
    assert client.poll_calls == 3


def test_success_resets_failure_count():
    client = FakeGenerationClient(
        poll_results=[
            TransientPollError("down"),
            make_operation(),
            TransientPollError("down"),
            make_operation(done=True),
        ]
    )
    loop, _, _ = _loop(client, max_consecutive_failures=2)

    loop.run()
    assert loop.state is PollState.DONE
    assert client.poll_calls == 4


def test_unparseable_poll_response_is_retried():
    done = make_operation(done=True, uri="https://example.com/v")
    responses = [ValueError("Failed to parse response"), done]

    def get(operation):
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    sdk = SimpleNamespace(operations=SimpleNamespace(get=get))
    loop, sleeps, _ = _loop(GenerationClient(sdk, "veo-test"))

    assert loop.run() is done
    assert loop.state is PollState.DONE
    assert loop.ticks == 2
    assert len(sleeps) == 2


def test_already_done_operation_is_not_polled():
    client = FakeGenerationClient()
    loop = PollingLoop(client, make_operation(done=True), sleep=lambda s: None)
    loop.run()
    assert client.poll_calls == 0


def test_operation_is_required():
    with pytest.raises(ValueError):
        PollingLoop(FakeGenerationClient(), None)
