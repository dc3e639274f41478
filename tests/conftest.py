"""Root pytest configuration for image-loader tests."""
import pytest

from image_loader.models import DesiredImage, OciImageConfig, RuntimeConfig
from image_loader.settings import Settings
from image_loader.store.fakes import FakeImageStore


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires a Docker engine)"
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


# Set up test environment variables
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically set up test environment variables."""
    monkeypatch.setenv("DOCKER_HOST", "unix:///var/run/docker.sock")
    monkeypatch.delenv("IMAGE_LOADER_API_VERSION", raising=False)
    monkeypatch.delenv("IMAGE_LOADER_TIMEOUT", raising=False)
    monkeypatch.delenv("IMAGE_LOADER_MAX_LOAD_RESPONSE_BYTES", raising=False)
    monkeypatch.delenv("IMAGE_LOADER_STORE", raising=False)


# Standardized test fixtures
@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(docker_host="unix:///var/run/docker.sock", timeout_s=30.0)


@pytest.fixture
def store():
    """Standard fake image store for testing."""
    return FakeImageStore()


@pytest.fixture
def oci_config():
    """OCI config of the image the build produced."""
    return OciImageConfig(
        architecture="amd64",
        os="linux",
        config=RuntimeConfig(
            env=["PATH=/usr/local/bin:/usr/bin", "APP_ENV=prod"],
            entrypoint=["/app/server"],
            cmd=["--port", "8080"],
            working_dir="/app",
            user="1000",
            labels={"org.opencontainers.image.source": "https://example.com/app"},
        ),
    )


@pytest.fixture
def desired(oci_config):
    """Desired state: digest sha256:aaa, tag app:v1."""
    return DesiredImage(digest="sha256:aaa", config=oci_config, repo_tags=("app:v1",))


@pytest.fixture
def archive(tmp_path):
    """A placeholder archive file; fakes never look inside it."""
    path = tmp_path / "image.tar"
    path.write_bytes(b"fake image archive")
    return path
