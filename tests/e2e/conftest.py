"""
Pytest fixtures for end-to-end tests.
"""

import pytest
import pytest_asyncio
import asyncio
import tempfile
import os
import time
from multiprocessing import Process

import httpx


def run_aseguradora(config_path: str, port: int):
    """Run the API server in a subprocess."""
    import sys
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

    from aseguradora.config import load_config
    from aseguradora.main import run_server

    config = load_config(config_path)
    config.server.port = port

    asyncio.run(run_server(config))


def wait_until_ready(base_url: str, timeout: float = 10.0):
    """Poll the health endpoint until the server answers."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            if httpx.get(f"{base_url}/health", timeout=1.0).status_code == 200:
                return
        except httpx.TransportError:
            pass
        time.sleep(0.1)
    raise RuntimeError(f"Server at {base_url} did not start within {timeout}s")


@pytest.fixture(scope="session")
def api_port():
    """Port for the API server."""
    return 14000


@pytest.fixture(scope="session")
def test_config(api_port):
    """Create test configuration file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_content = f"""
server:
  host: "127.0.0.1"
  port: {api_port}

database:
  url: "sqlite+aiosqlite:///{tmpdir}/test.db"

logging:
  level: "WARNING"
"""
        config_path = os.path.join(tmpdir, "config.yaml")
        with open(config_path, "w") as f:
            f.write(config_content)

        yield config_path


@pytest.fixture(scope="session")
def api_server(test_config, api_port):
    """Start the API server."""
    process = Process(target=run_aseguradora, args=(test_config, api_port))
    process.start()

    base_url = f"http://127.0.0.1:{api_port}"
    try:
        wait_until_ready(base_url)
        yield base_url
    finally:
        process.terminate()
        process.join(timeout=5)


@pytest_asyncio.fixture
async def http_client():
    """Async HTTP client."""
    async with httpx.AsyncClient(timeout=30.0) as client:
        yield client
