"""
Test Configuration and Fixtures

Shared configuration and fixtures for the hazard monitor test suite.
No test touches the network: aiohttp sessions are replaced by FakeSession.
"""
import os
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hazard_monitor.catalog_client import CatalogClient, ProductMetadata
from hazard_monitor.dispatcher import SatelliteDataDispatcher
from hazard_monitor.regions import Region, RegionRegistry, default_registry
from hazard_monitor.token_provider import TokenProvider

# Test environment configuration
TEST_ENV = {
    "COPERNICUS_CLIENT_ID": "test-client",
    "COPERNICUS_CLIENT_SECRET": "test-secret",
    "COPERNICUS_TOKEN_URL": "https://identity.test/token",
    "COPERNICUS_CATALOG_URL": "https://catalogue.test/odata/v1/Products",
    "LOG_LEVEL": "DEBUG",
}

TOKEN_URL = TEST_ENV["COPERNICUS_TOKEN_URL"]
CATALOG_URL = TEST_ENV["COPERNICUS_CATALOG_URL"]


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Automatically configure test environment for all tests"""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("TOKEN_CACHE_ENABLED", raising=False)


class FakeResponse:
    """Stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(self, status: int = 200, payload: Any = None, text: str = ""):
        self.status = status
        self._payload = payload if payload is not None else {}
        self._text = text

    async def json(self, **kwargs):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Records every request and answers through ``handler(method, url, kwargs)``,
    which returns a FakeResponse or raises.
    """

    def __init__(self, handler: Callable[[str, str, Dict[str, Any]], FakeResponse]):
        self.handler = handler
        self.calls: List[tuple] = []
        self.closed = False

    def _request(self, method: str, url: str, **kwargs):
        self.calls.append((method, str(url), kwargs))
        return self.handler(method, str(url), kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def calls_to(self, prefix: str) -> List[tuple]:
        return [call for call in self.calls if call[1].startswith(prefix)]

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False


def token_payload(token: str = "test-token", expires_in: int = 600) -> Dict[str, Any]:
    return {"access_token": token, "expires_in": expires_in, "token_type": "Bearer"}


def catalog_record(
    product_id: str,
    name: str,
    start: Optional[str] = None,
    modified: Optional[str] = None,
    cloud_cover: Optional[float] = None,
    product_type: Optional[str] = "S2MSI2A",
) -> Dict[str, Any]:
    record: Dict[str, Any] = {"Id": product_id, "Name": name, "Attributes": []}
    if start is not None:
        record["ContentDate"] = {"Start": start, "End": start}
    if modified is not None:
        record["ModificationDate"] = modified
    if cloud_cover is not None:
        record["Attributes"].append({
            "@odata.type": "#OData.CSC.DoubleAttribute",
            "Name": "cloudCover",
            "Value": cloud_cover,
            "ValueType": "Double",
        })
    if product_type is not None:
        record["ProductType"] = product_type
    return record


def make_product(
    acquisition_date: Optional[str] = "2025-05-01T09:00:00.000Z",
    cloud_cover: Optional[float] = None,
    satellite: str = "Sentinel-2",
    name: str = "S2A_MSIL2A_TEST",
) -> ProductMetadata:
    return ProductMetadata(
        id=f"id-{acquisition_date}-{cloud_cover}",
        name=name,
        acquisition_date=acquisition_date,
        cloud_cover=cloud_cover,
        product_type="S2MSI2A" if satellite == "Sentinel-2" else "GRD",
        satellite=satellite,
        processing_level="L2A" if "L2A" in name else "Unknown",
    )


def optical_records(count: int, cloud_cover: float = 10) -> List[Dict[str, Any]]:
    return [
        catalog_record(
            f"s2-{i}",
            f"S2A_MSIL2A_202505{i + 1:02d}T092031_N0511_R093_T35TLK",
            start=f"2025-05-{i + 1:02d}T09:20:31.024Z",
            cloud_cover=cloud_cover,
        )
        for i in range(count)
    ]


def radar_records(count: int) -> List[Dict[str, Any]]:
    return [
        catalog_record(
            f"s1-{i}",
            f"S1A_IW_GRDH_1SDV_202505{i + 1:02d}T160000_EW",
            start=f"2025-05-{i + 1:02d}T16:00:00.000Z",
            product_type="IW_GRDH_1S",
        )
        for i in range(count)
    ]


def catalog_handler(
    optical: Any = None,
    radar: Any = None,
    token_status: int = 200,
) -> Callable[[str, str, Dict[str, Any]], FakeResponse]:
    """
    Route token and catalog requests. ``optical``/``radar`` are lists of raw
    records, or a FakeResponse/exception to return or raise for that collection.
    """

    def _answer(result):
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, FakeResponse):
            return result
        return FakeResponse(200, {"value": result or []})

    def handler(method: str, url: str, kwargs: Dict[str, Any]) -> FakeResponse:
        if url.startswith(TOKEN_URL):
            if token_status != 200:
                return FakeResponse(token_status, text="unauthorized_client")
            return FakeResponse(200, token_payload())
        if "SENTINEL-1" in url:
            return _answer(radar)
        return _answer(optical)

    return handler


@pytest.fixture
def fixed_now():
    return datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def test_registry():
    """Small substitute registry with a single region."""
    return RegionRegistry([Region("test_area", "Test Area", (20.0, 44.0, 21.0, 45.0))])


@pytest.fixture
def fagaras(registry):
    return registry.lookup("fagaras")


@pytest.fixture
def token_provider():
    return TokenProvider(TOKEN_URL, TEST_ENV["COPERNICUS_CLIENT_ID"], TEST_ENV["COPERNICUS_CLIENT_SECRET"])


@pytest.fixture
def catalog_client():
    return CatalogClient(CATALOG_URL, max_results=10)


@pytest.fixture
def make_dispatcher(registry, token_provider, catalog_client):
    """Factory building a dispatcher whose sessions all answer via ``handler``."""

    def _make(handler, **kwargs):
        session = FakeSession(handler)
        dispatcher = SatelliteDataDispatcher(
            registry=kwargs.pop("registry", registry),
            token_provider=kwargs.pop("token_provider", token_provider),
            catalog_client=kwargs.pop("catalog_client", catalog_client),
            session_factory=lambda: session,
        )
        return dispatcher, session

    return _make
