import os

os.environ.setdefault("CMS_ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_site
from middleware.error_handler import register_alert_hook
from sites.site_config import ADMIN_SITE, DEMO_SITE


@pytest.fixture
def settings():
    return Settings(environment="test")


@pytest.fixture
def admin_site(settings):
    return create_site(ADMIN_SITE, settings)


@pytest.fixture
def demo_site(settings):
    return create_site(DEMO_SITE, settings)


@pytest.fixture
def admin_client(admin_site):
    with TestClient(admin_site, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def demo_client(demo_site):
    with TestClient(demo_site, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture(params=[ADMIN_SITE, DEMO_SITE], ids=lambda site: site.name)
def site_client(request, settings):
    with TestClient(create_site(request.param, settings), raise_server_exceptions=False) as client:
        yield client


@pytest.fixture(autouse=True)
def _reset_alert_hook():
    yield
    register_alert_hook(None)
