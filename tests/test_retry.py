import pytest
import requests

from vencode_client.retry import RetryAction, RetryPolicy


@pytest.mark.parametrize("signal", [
    ConnectionRefusedError(111, "Connection refused"),
    requests.ConnectionError("Failed to establish a new connection: [Errno 111] Connection refused"),
    requests.HTTPError("404 Client Error: Not Found for url: https://api.example.com/api/events"),
    "connect ECONNREFUSED 127.0.0.1:443",
])
def test_retryable_signals(signal):
    assert RetryPolicy().is_retryable(signal)


@pytest.mark.parametrize("signal", [
    requests.ReadTimeout("Read timed out"),
    requests.HTTPError("500 Server Error: Internal Server Error"),
    "",
])
def test_non_retryable_signals(signal):
    assert not RetryPolicy().is_retryable(signal)


def test_retryable_error_increments_counter():
    decision = RetryPolicy(ceiling=3).on_error("Connection refused", 0)

    assert decision.action is RetryAction.CONTINUE
    assert decision.counter == 1


def test_non_retryable_error_keeps_counter():
    decision = RetryPolicy(ceiling=3).on_error("Read timed out", 2)

    assert decision.action is RetryAction.CONTINUE
    assert decision.counter == 2


def test_reaching_ceiling_closes():
    policy = RetryPolicy(ceiling=3)
    counter = 0
    actions = []
    for _ in range(3):
        decision = policy.on_error("Not Found", counter)
        counter = decision.counter
        actions.append(decision.action)

    assert actions == [RetryAction.CONTINUE, RetryAction.CONTINUE, RetryAction.CLOSE]
    assert decision.should_close


def test_on_open_resets():
    assert RetryPolicy().on_open() == 0


def test_default_ceiling():
    assert RetryPolicy().ceiling == 15


def test_invalid_ceiling():
    with pytest.raises(ValueError):
        RetryPolicy(ceiling=0)


def test_404_without_reason_phrase_is_retryable():
    response = requests.Response()
    response.status_code = 404
    response.reason = ""
    error = requests.HTTPError("404 Client Error:  for url: https://api.example.com/api/events", response=response)

    assert RetryPolicy().is_retryable(error)


def test_other_status_without_reason_phrase_is_not_retryable():
    response = requests.Response()
    response.status_code = 500
    error = requests.HTTPError("500 Server Error:  for url: https://api.example.com/api/events", response=response)

    assert not RetryPolicy().is_retryable(error)
