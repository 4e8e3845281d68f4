from collections import namedtuple

import pytest

from consul_sd import health
from consul_sd.health import create_app

DiskUsage = namedtuple("DiskUsage", "total used free percent")
Memory = namedtuple("Memory", "total available")

GB = 1024 ** 3


@pytest.fixture
def client():
    return create_app().test_client()


def test_health(client):
    response = client.get("/sd/health")
    assert response.status_code == 200
    assert response.get_data(as_text=True).startswith("OK")


@pytest.mark.parametrize("percent_used,status", [
    (50.0, 200),
    (92.0, 429),
    (97.0, 500),
])
def test_disk(client, monkeypatch, percent_used, status):
    usage = DiskUsage(100 * GB, percent_used * GB, (100 - percent_used) * GB, percent_used)
    monkeypatch.setattr(health.psutil, "disk_usage", lambda path: usage)

    response = client.get("/sd/disk")

    assert response.status_code == status
    assert "Free space" in response.get_data(as_text=True)


@pytest.mark.parametrize("load,status", [
    (0.5, 200),
    (4.0, 429),
    (9.0, 500),
])
def test_cpu(client, monkeypatch, load, status):
    monkeypatch.setattr(health.psutil, "cpu_count", lambda: 4)
    monkeypatch.setattr(health.psutil, "getloadavg", lambda: (load, 0.1, 0.1))

    response = client.get("/sd/cpu")

    assert response.status_code == status
    assert "Cores: 4" in response.get_data(as_text=True)


@pytest.mark.parametrize("available,status", [
    (50 * GB, 200),
    (8 * GB, 429),
    (3 * GB, 500),
])
def test_ram(client, monkeypatch, available, status):
    monkeypatch.setattr(health.psutil, "virtual_memory", lambda: Memory(100 * GB, available))

    response = client.get("/sd/ram")

    assert response.status_code == status
    body = response.get_data(as_text=True)
    assert body.startswith({200: "OK", 429: "WARNING", 500: "CRITICAL"}[status])
