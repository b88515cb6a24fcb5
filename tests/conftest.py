import pytest

from vencode_client.config import Access, ClientConfig
from vencode_client.subscriptions import SubscriptionManager


class FakeConnection:
    """Stand-in for StreamConnection whose hooks are fired by the test."""

    def __init__(self, url, on_open, on_message, on_error, session=None, reconnect_delay=0, name=None):
        self.url = url
        self.on_open = on_open
        self.on_message = on_message
        self.on_error = on_error
        self.name = name
        self.open_calls = 0
        self.close_calls = 0

    def open(self):
        self.open_calls += 1
        return self

    def close(self):
        self.close_calls += 1

    def fire_open(self):
        self.on_open()

    def fire_message(self, raw):
        self.on_message(raw)

    def fire_error(self, signal):
        self.on_error(signal)


class FakeConnectionFactory:
    def __init__(self):
        self.connections = []

    def __call__(self, url, **kwargs):
        connection = FakeConnection(url, **kwargs)
        self.connections.append(connection)
        return connection


@pytest.fixture
def config():
    return ClientConfig(
        access=Access(api_key="key-123", user_id="user-456"),
        base_url="https://api.example.com/api",
        max_listen_retry=3,
        reconnect_delay=0,
    )


@pytest.fixture
def factory():
    return FakeConnectionFactory()


@pytest.fixture
def manager(config, factory):
    return SubscriptionManager(config, connection_factory=factory)
