import threading

import consul
import pytest

from consul_sd.config import RegistrarConfig


class FakeAgent:
    """Records agent calls in the order they were made"""

    def __init__(self, calls, fail=None):
        self.calls = calls
        self.fail = fail or {}
        self.service = FakeEndpoint(self, "service")
        self.check = FakeEndpoint(self, "check")

    def self(self):
        self.calls.append(("agent.self", (), {}))
        return {"Config": {"NodeName": "test"}}


class FakeEndpoint:
    def __init__(self, agent, kind):
        self.agent = agent
        self.kind = kind

    def _call(self, op, *args, **kwargs):
        key = f"{self.kind}.{op}"
        self.agent.calls.append((key, args, kwargs))
        failure = self.agent.fail.get(key)
        if callable(failure):
            return failure(*args, **kwargs)
        if failure is not None:
            raise failure
        return True

    def register(self, *args, **kwargs):
        return self._call("register", *args, **kwargs)

    def deregister(self, *args, **kwargs):
        return self._call("deregister", *args, **kwargs)


class FakeConsul:
    def __init__(self, fail=None):
        self.calls = []
        self.agent = FakeAgent(self.calls, fail)

    def ops(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_consul():
    return FakeConsul()


@pytest.fixture
def config():
    return RegistrarConfig(
        name="svc",
        port=8080,
        tags=["v1"],
        url="http://localhost",
        check_interval="10s",
        check_timeout="5s",
    )


@pytest.fixture
def ready():
    event = threading.Event()
    event.set()
    return event


@pytest.fixture
def consul_error():
    return consul.ConsulException("agent unavailable")
