"""Test fictures and mocks."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from hapclient.config import Config
from hapclient.hap_http import HAPHttpClient
from hapclient.instance import Instance, InstancePool
from hapclient.loader import get_registry


@pytest.fixture(name="async_zeroconf")
def async_zc():
    with patch("hapclient.discovery.AsyncZeroconf") as mock_async_zeroconf:
        aiozc = mock_async_zeroconf.return_value
        aiozc.async_close = AsyncMock()
        yield mock_async_zeroconf


@pytest.fixture(name="service_browser")
def service_browser():
    with patch("hapclient.discovery.AsyncServiceBrowser") as mock_browser:
        mock_browser.side_effect = lambda *args, **kwargs: MagicMock(
            async_cancel=AsyncMock()
        )
        yield mock_browser


@pytest.fixture
def registry():
    return get_registry()


@pytest.fixture
def config():
    return Config(debug=True, instance_blacklist=["DE:AD:BE:EF"])


@pytest.fixture
def pool():
    return InstancePool()


@pytest.fixture
def instance():
    return Instance("AA:BB", "Bridge", "192.168.1.10", 51826)


@pytest.fixture
def http():
    """A HAPHttpClient whose requests are mocks."""
    mock_http = HAPHttpClient(None)
    mock_http.async_get_accessories = AsyncMock()
    mock_http.async_get_characteristics = AsyncMock()
    mock_http.async_put_characteristics = AsyncMock()
    return mock_http
