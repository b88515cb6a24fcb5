import json
from unittest.mock import MagicMock

import pytest
import requests

from vencode_client.client import VencodeClient
from vencode_client.config import Access, ClientConfig, StorageCredentials
from vencode_client.exceptions import (
    APIError,
    AuthenticationError,
    ConnectionFailedError,
    NotFoundError,
    ServerError,
)
from vencode_client.models import JobStatus


def make_response(status_code, body=None, reason="OK"):
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response._content = json.dumps(body).encode() if body is not None else b""
    return response


@pytest.fixture
def client(config):
    client = VencodeClient(config)
    client.session.request = MagicMock()
    yield client
    client.close()


def test_session_headers(config):
    client = VencodeClient(config)

    assert client.session.headers["x-api-key"] == "key-123"
    assert client.session.headers["x-user-id"] == "user-456"
    assert client.session.headers["Content-Type"] == "application/json"
    client.close()


def test_encode_posts_job(client):
    client.session.request.return_value = make_response(201, {"id": "job-1", "status": "queued"})

    job = client.encode({"input": {"path": "https://example.com/a.mov"}, "outputs": []})

    assert job.id == "job-1"
    assert job.status is JobStatus.QUEUED
    method, url = client.session.request.call_args.args
    assert method == "POST"
    assert url == "https://api.example.com/api/jobs"
    assert "notify" not in client.session.request.call_args.kwargs["json"]


def test_encode_applies_client_notify_and_storage():
    config = ClientConfig(
        access=Access("k", "u"),
        notify={"webhookUrl": "https://hooks.example.com/default"},
        storage=StorageCredentials(bucket="videos", aws_access_key_id="AK", aws_secret_access_key="SK"),
    )
    client = VencodeClient(config)
    client.session.request = MagicMock(return_value=make_response(200, {"id": "job-2", "status": "pending"}))

    client.encode({"input": {"path": "x"}})
    payload = client.session.request.call_args.kwargs["json"]
    assert payload["notify"] == {"webhookUrl": "https://hooks.example.com/default"}
    assert payload["storage"]["bucket"] == "videos"
    assert payload["storage"]["accessKeyId"] == "AK"

    client.encode({"input": {"path": "x"}, "notify": {"webhookUrl": "https://hooks.example.com/job"}})
    payload = client.session.request.call_args.kwargs["json"]
    assert payload["notify"] == {"webhookUrl": "https://hooks.example.com/default"}
    client.close()


def test_stop_job(client):
    client.session.request.return_value = make_response(200, {"ok": True})

    assert client.stop_job("job-1") == {"ok": True}
    assert client.session.request.call_args.args == ("POST", "https://api.example.com/api/jobs/job-1/cancel")


def test_get_job_metadata(client):
    client.session.request.return_value = make_response(200, {"id": "job-1", "status": "Processing", "progress": 40})

    job = client.get_job_metadata("job-1")

    assert job.status is JobStatus.PROCESSING
    assert job.progress == 40.0
    assert client.session.request.call_args.args == ("GET", "https://api.example.com/api/jobs/job-1")


def test_unknown_status_is_tolerated(client):
    client.session.request.return_value = make_response(200, {"id": "job-1", "status": "thinking"})

    assert client.get_job_metadata("job-1").status is JobStatus.UNKNOWN


def test_empty_body_returns_none(client):
    client.session.request.return_value = make_response(204)

    assert client.request("POST", "/jobs/job-1/cancel") is None


@pytest.mark.parametrize("status_code,error_cls", [
    (400, APIError),
    (401, AuthenticationError),
    (403, AuthenticationError),
    (404, NotFoundError),
    (503, ServerError),
])
def test_error_statuses_are_normalized(client, status_code, error_cls):
    client.session.request.return_value = make_response(status_code, {"message": "nope"}, reason="Err")

    with pytest.raises(error_cls) as excinfo:
        client.get_job_metadata("job-1")

    assert excinfo.value.status_code == status_code
    assert excinfo.value.message == "nope"
    assert excinfo.value.body == {"message": "nope"}


def test_transport_failure(client):
    client.session.request.side_effect = requests.ConnectionError("Connection refused")

    with pytest.raises(ConnectionFailedError):
        client.stop_job("job-1")


def test_builder_runs_through_client(client):
    client.session.request.return_value = make_response(201, {"id": "job-3", "status": "pending"})

    job = client.job().with_input("https://example.com/a.mov").to_resolutions(["720p", "out-720"]).run()

    assert job.id == "job-3"
    payload = client.session.request.call_args.kwargs["json"]
    assert payload["outputs"] == [{"key": "out-720", "encode": {"format": "mp4", "res": "720p"}}]


def test_listen_delegates_to_subscription_manager(client, factory):
    from vencode_client.subscriptions import SubscriptionManager

    client._subscriptions = SubscriptionManager(client.config, connection_factory=factory)

    subscription = client.listen("job-1", lambda event: None)
    assert client.listen_all(lambda event: None) is client.listen_all(lambda event: None)
    assert client.stop_listening("job-1") is True
    assert subscription.closed

    client.close()
    assert all(c.close_calls == 1 for c in factory.connections)


def test_stop_listening_without_subscriptions(client):
    assert client.stop_listening("job-1") is False


def test_job_notify_is_kept_without_client_default(client):
    client.session.request.return_value = make_response(200, {"id": "job-4", "status": "pending"})

    client.encode({"input": {"path": "x"}, "notify": {"webhookUrl": "https://hooks.example.com/job"}})

    payload = client.session.request.call_args.kwargs["json"]
    assert payload["notify"] == {"webhookUrl": "https://hooks.example.com/job"}


def test_listen_after_close_raises(config, monkeypatch):
    from vencode_client.exceptions import SubscriptionError
    from vencode_client.stream import StreamConnection

    opened = MagicMock()
    monkeypatch.setattr(StreamConnection, "open", opened)
    client = VencodeClient(config)
    client.close()

    with pytest.raises(SubscriptionError):
        client.listen("job-1", lambda event: None)
    with pytest.raises(SubscriptionError):
        client.listen_all(lambda event: None)
    opened.assert_not_called()
    assert client.stop_listening("job-1") is False
