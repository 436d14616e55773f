# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests using testcontainers.

Container lifecycle:
- session scope: the Redis container starts once per pytest session
- function scope: FLUSHDB before each test for isolation

Custom container wrapper:
- Uses DockerContainer directly with bridge network IP + internal port
- Required for devcontainer with docker-outside-of-docker (socket mount)
- Built-in testcontainers library returns localhost:mapped_port which is
  unreachable from inside a devcontainer
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
import pytest

logger = logging.getLogger(__name__)


# ── Pytest markers ──────────────────────────────────────────────

def pytest_configure(config):
    config.addinivalue_line("markers", "redis: marks tests requiring Redis container")


# =====================================================================
#  DEVCONTAINER NETWORKING HELPERS
# =====================================================================

def _get_container_bridge_ip(container, max_attempts: int = 10) -> str:
    """Get container bridge network IP with retries.

    In docker-outside-of-docker setups, containers are on the host Docker
    daemon. The devcontainer must access them via bridge IP, not localhost.
    """
    for attempt in range(max_attempts):
        try:
            wrapped = container.get_wrapped_container()
            wrapped.reload()
            networks = wrapped.attrs.get("NetworkSettings", {}).get("Networks", {})
            for net_name, net_info in networks.items():
                ip = net_info.get("IPAddress", "")
                if ip:
                    logger.info(
                        "Container %s IP: %s (network: %s, attempt %d)",
                        wrapped.short_id, ip, net_name, attempt + 1,
                    )
                    return ip
        except Exception as e:
            logger.debug("Error getting IP (attempt %d): %s", attempt + 1, e)
        time.sleep(0.5)

    raise RuntimeError(
        f"Could not obtain container bridge IP after {max_attempts} attempts"
    )


def _docker_available() -> bool:
    """Check if Docker daemon is reachable."""
    try:
        import docker
        client = docker.from_env()
        client.ping()
        return True
    except Exception:
        return False


# =====================================================================
#  FAKE COMPUTE BACKEND — httpx.MockTransport, no Docker required
# =====================================================================

class FakeInferenceServer:
    """Serves POST /infer like the real separation engine.

    Records every multipart request it receives. ``status_code`` and
    ``error_body`` switch it into failure mode.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.error_body: Any = None
        self.named = True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json=self.error_body)
        files = [
            "https://cdn.test/out/vocals.wav",
            "https://cdn.test/out/accompaniment.wav",
        ]
        body: dict[str, Any] = {"status": "success", "files": files}
        if self.named:
            body["stems"] = [
                {"name": "Vocals", "url": files[0]},
                {"name": "Accompaniment", "url": files[1]},
            ]
        return httpx.Response(200, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def inference_server() -> FakeInferenceServer:
    return FakeInferenceServer()


# =====================================================================
#  REDIS CONTAINER — session scope (bridge IP)
# =====================================================================

REDIS_IMAGE = "redis:7-alpine"
REDIS_INTERNAL_PORT = 6379


@pytest.fixture(scope="session")
def redis_container():
    if not _docker_available():
        pytest.skip("Docker not available")

    from testcontainers.core.container import DockerContainer
    from testcontainers.core.waiting_utils import wait_for_logs

    container = DockerContainer(REDIS_IMAGE).with_exposed_ports(REDIS_INTERNAL_PORT)
    container.start()
    wait_for_logs(container, predicate=r"Ready to accept connections", timeout=30)

    ip = _get_container_bridge_ip(container)
    logger.info("Redis ready at %s:%d", ip, REDIS_INTERNAL_PORT)
    yield {"host": ip, "port": REDIS_INTERNAL_PORT}
    container.stop()


@pytest.fixture
def redis_url(redis_container) -> str:
    import redis

    url = f"redis://{redis_container['host']}:{redis_container['port']}/0"
    client = redis.Redis.from_url(url)
    client.flushdb()
    client.close()
    return url
