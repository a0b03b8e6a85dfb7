"""Pytest configuration and shared fixtures.

The project root is put on ``sys.path`` so ``import igservice`` works when
tests are run from a checkout without installing the package.
"""

import os
import sys
from typing import Any, Callable, Dict, List

import httpx
import pytest

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from igservice.client import IGServiceClient  # noqa: E402
from igservice.core.config import Settings, get_settings  # noqa: E402

BASE_URL = "http://ig.test"
WEBSERVICE = BASE_URL + "/apps/webservice.jsp?wsrvformat=json&wsrvfunc="


def ok_envelope(**rsp: Any) -> Dict[str, Any]:
    return {"rsp": {"stat": "ok", **rsp}}


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any .env file in the working directory."""
    return Settings(_env_file=None)


@pytest.fixture
def recorded() -> List[httpx.Request]:
    return []


@pytest.fixture
def make_client(settings, recorded) -> Callable[..., IGServiceClient]:
    """
    Build a client whose transport answers through ``responder``.

    ``responder`` receives the outgoing request and returns either an
    ``httpx.Response`` or a JSON-serializable object sent with status 200.
    """

    def _make(responder=None, config=None) -> IGServiceClient:
        def handler(request: httpx.Request) -> httpx.Response:
            recorded.append(request)
            reply = responder(request) if responder else ok_envelope()
            if isinstance(reply, httpx.Response):
                return reply
            return httpx.Response(200, json=reply)

        return IGServiceClient(
            BASE_URL,
            config,
            transport=httpx.MockTransport(handler),
            settings=settings,
        )

    return _make
