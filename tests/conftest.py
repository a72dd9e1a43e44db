"""Root pytest configuration for helm2oci tests."""
import pytest

from helm2oci.settings import Settings
from helm2oci.storage.layout import ensure_layout

from .helpers.chart_helpers import build_chart_archive


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


# Keep the developer's environment out of settings loading
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically clear helm2oci environment variables."""
    for key in ("HELM2OCI_TMPDIR", "HELM2OCI_CHUNK_SIZE", "HELM2OCI_INDEX_POLICY", "HELM2OCI_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings()


@pytest.fixture
def chart_archive(tmp_path):
    """demo-1.0.0.tgz declaring name demo, version 1.0.0."""
    src = tmp_path / "charts"
    src.mkdir()
    return build_chart_archive(src)


@pytest.fixture
def layout(tmp_path):
    """Freshly initialized, empty OCI layout."""
    return ensure_layout(tmp_path / "oci")
