import pytest

from tailmesh.config import Settings
from tests.helpers import FakeRunner


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        tailscale_path=str(tmp_path / "bin" / "tailscale"),
        tailscale_fallback_path=str(tmp_path / "local" / "bin" / "tailscale"),
        output_limit_bytes=4096,
        command_timeout_seconds=5,
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()
