"""Shared test fixtures for pytest.

ENVIRONMENT is pinned to "test" before any settings are built so no env file
is read and logging stays human-readable.
"""

import os
from collections.abc import Callable
from datetime import datetime

import httpx
import pytest


os.environ["ENVIRONMENT"] = "test"

from order_console.core.config import get_settings  # noqa: E402
from order_console.services.orders.client import OrdersApiClient  # noqa: E402


BASE_URL = "http://testserver"
FIXED_NOW = datetime(2026, 10, 18, 9, 30, 0)


@pytest.fixture(autouse=True)
def _test_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def make_api_client() -> Callable[..., OrdersApiClient]:
    """Build an OrdersApiClient whose requests go to a MockTransport handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> OrdersApiClient:
        settings = get_settings().model_copy(update={"ORDERS_API_BASE_URL": BASE_URL})
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return OrdersApiClient(settings, http_client=http_client)

    return _make
