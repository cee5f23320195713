import os

import pytest

from sifpull.internal.config import RemoteEndpointConfig
from sifpull.kernel.pull import PullService
from tests.kernel.mocks import MockCacheProvider, make_backends


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Every test runs with its own HOME and working directory, and without any
    SIFPULL_* variables leaking in from the developer's shell.
    """
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    for key in list(os.environ):
        if key.startswith("SIFPULL_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    yield work


@pytest.fixture
def backends():
    return make_backends()


@pytest.fixture
def cache_provider():
    return MockCacheProvider()


@pytest.fixture
def endpoint():
    return RemoteEndpointConfig(
        library_uri="https://library.example.org",
        keyserver_uris=("https://keys.example.org",),
        token="endpoint-token",
    )


@pytest.fixture
def pull_service(backends, cache_provider, endpoint):
    return PullService(backends=backends, cache_provider=cache_provider, endpoint=endpoint)
