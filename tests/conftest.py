import pytest
from fastapi.testclient import TestClient
from freeload.core import config
from freeload.core.metrics import Counters
from freeload.main import create_app
from tests.helpers import origin_client

@pytest.fixture
def metrics():
    """Isolated counters, so assertions never see other tests' requests"""
    return Counters()

@pytest.fixture
def test_settings():
    """Settings instance for one test; the module-level settings stay untouched"""
    settings = config.Settings()
    settings.ORIGIN_TIMEOUT = 1.0
    settings.CORS_ORIGINS = "*"
    settings.JSON_ROOT = "/json"
    settings.MAX_CONCURRENCY = 0
    settings.CANCEL_ON_TIMEOUT = False
    settings.GZIP_MINIMUM_SIZE = 0
    return settings

@pytest.fixture
def make_api(test_settings, metrics):
    """Build a TestClient whose origin requests are answered by `handler`"""
    def _make(handler) -> TestClient:
        app = create_app(test_settings, client=origin_client(handler), metrics=metrics)
        return TestClient(app)
    return _make
