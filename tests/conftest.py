from __future__ import annotations

import pytest

from bridge.core.cookies import MemoryCookieStore
from bridge.core.identity import AuthClient
from bridge.core.url import QueryStringReader

from .helpers.fakes import FakeLogger, FakeTransport


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def cookies():
    return MemoryCookieStore()


@pytest.fixture
def logger():
    return FakeLogger()


@pytest.fixture
def client(transport, cookies, logger):
    return AuthClient(transport=transport, cookies=cookies, url=QueryStringReader(""), logger=logger)
