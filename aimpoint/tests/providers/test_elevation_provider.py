from __future__ import annotations

from typing import Callable, Iterable

import httpx
import pytest

from aimpoint.geo import Point
from aimpoint.providers import cache, elevation
from aimpoint.providers.elevation import ELEVATION_CACHE_TTL
from aimpoint.providers.errors import ProviderError


class _FakeClock:
    def __init__(self, start: float) -> None:
        self._value = start

    def time(self) -> float:
        return self._value

    def advance(self, delta: float) -> None:
        self._value += delta


def _make_client_factory(
    handlers: Iterable[Callable[[httpx.Request], httpx.Response]],
) -> Callable[..., httpx.Client]:
    handler_iter = iter(handlers)

    def factory(**kwargs) -> httpx.Client:
        try:
            handler = next(handler_iter)
        except StopIteration as exc:  # pragma: no cover - defensive
            raise AssertionError("unexpected extra HTTP call") from exc
        transport = httpx.MockTransport(handler)
        timeout = kwargs.get("timeout", 5.0)
        return httpx.Client(transport=transport, timeout=timeout)

    return factory


@pytest.fixture(autouse=True)
def _reset_provider_state():
    elevation._cache = cache.ProviderCache("test-elevation", ELEVATION_CACHE_TTL)
    yield


@pytest.fixture
def fake_clock(monkeypatch) -> _FakeClock:
    clock = _FakeClock(start=1_000_000.0)
    monkeypatch.setattr(cache.time, "time", clock.time)
    return clock


def test_provider_cache_ttl_and_expiry(fake_clock):
    store = cache.ProviderCache("unit-cache", default_ttl=10)
    entry = store.set("alpha", {"value": 1})
    assert entry.etag
    assert entry.ttl_seconds == 10

    fake_clock.advance(4)
    cached = store.get("alpha")
    assert cached is not None
    assert cached.ttl_seconds == 6

    fake_clock.advance(10)
    assert store.get("alpha") is None
    assert len(store) == 0


def test_provider_cache_evicts_oldest_when_full():
    store = cache.ProviderCache("small", default_ttl=60, max_entries=2)
    store.set("a", 1)
    store.set("b", 2)
    store.set("c", 3)
    assert len(store) == 2
    assert store.get("a") is None
    assert store.get("c").value == 3


def test_open_meteo_success_is_cached(monkeypatch):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        assert request.url.params["latitude"] == "37.0"
        return httpx.Response(200, json={"elevation": [42.5]})

    monkeypatch.setattr(elevation, "_http_client_factory", _make_client_factory([handler]))
    first = elevation.get_elevation(37.0, -122.0)
    second = elevation.get_elevation(37.0, -122.0)
    assert first.elevation_m == pytest.approx(42.5)
    assert second.etag == first.etag
    assert len(seen) == 1


def test_falls_back_to_opentopodata(monkeypatch):
    def meteo(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    def opentopo(request: httpx.Request) -> httpx.Response:
        assert request.url.params["locations"] == "37.0,-122.0"
        return httpx.Response(200, json={"results": [{"elevation": 12.0}]})

    monkeypatch.setattr(
        elevation, "_http_client_factory", _make_client_factory([meteo, opentopo])
    )
    assert elevation.elevation_lookup(Point(-122.0, 37.0)) == pytest.approx(12.0)


def test_both_providers_failing_raises(monkeypatch):
    def meteo(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"elevation": [None]})

    def opentopo(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    monkeypatch.setattr(
        elevation, "_http_client_factory", _make_client_factory([meteo, opentopo])
    )
    with pytest.raises(ProviderError):
        elevation.get_elevation(10.0, 20.0)
    assert len(elevation._cache) == 0
