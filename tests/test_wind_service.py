import time

import anyio
import httpx
import pytest

from skydrift.ingestors.wind import HOURLY_FIELDS, WindService, cache_key
from skydrift.models import BalloonPoint, BalloonTrack, WindObservation
from skydrift.services.enrichment import WindEnricher

T = 7200 * 200_000


def _hourly(times, speeds=None, dirs=None, temps=None):
    return {
        "hourly": {
            "time": times,
            "windspeed_10m": speeds if speeds is not None else [5.0] * len(times),
            "winddirection_10m": dirs if dirs is not None else [90.0] * len(times),
            "temperature_2m": temps if temps is not None else [-40.0] * len(times),
        }
    }


class CountingHandler:
    def __init__(self, responder):
        self.responder = responder
        self.requests: list[httpx.Request] = []
        self.sent_at: list[float] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.sent_at.append(time.monotonic())
        return self.responder(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)


def _service(handler, request_interval=0.0):
    return WindService(
        base_url="https://weather.test/v1/forecast",
        request_interval=request_interval,
        transport=httpx.MockTransport(handler),
    )


def test_cache_key_buckets():
    assert cache_key(10.1, 20.1, T) == (10.0, 20.0, T // 7200)
    assert cache_key(10.05, 20.05, T + 3000) == cache_key(10.1, 20.1, T)
    assert cache_key(10.125, 0.0, 0) == (10.25, 0.0, 0)
    assert cache_key(-10.125, 0.0, 0) == (-10.0, 0.0, 0)
    assert cache_key(0.0, 0.0, 7199) != cache_key(0.0, 0.0, 7200)


@pytest.mark.anyio
async def test_nearby_lookups_share_one_fetch():
    handler = CountingHandler(lambda request: httpx.Response(200, json=_hourly([T])))
    service = _service(handler)

    first = await service.get_wind(10.1, 20.1, T)
    second = await service.get_wind(10.05, 20.05, T + 3000)

    assert first.available
    assert second == first
    assert handler.call_count == 1
    assert service.request_count == 1
    assert service.cache_size == 1
    assert service.cached(10.0, 20.0, T) == first


@pytest.mark.anyio
async def test_request_parameters():
    handler = CountingHandler(lambda request: httpx.Response(200, json=_hourly([T])))
    service = _service(handler)

    await service.get_wind(12.5, -45.25, T)

    params = handler.requests[0].url.params
    assert params["latitude"] == "12.5"
    assert params["longitude"] == "-45.25"
    assert params["hourly"] == HOURLY_FIELDS
    assert params["past_days"] == "1"
    assert params["forecast_days"] == "1"
    assert params["timeformat"] == "unixtime"


@pytest.mark.anyio
async def test_selects_closest_hour():
    times = [T - 7200, T - 3600, T + 100, T + 3600]
    payload = _hourly(
        times,
        speeds=[1.0, 2.0, 3.0, 4.0],
        dirs=[10.0, 20.0, 30.0, 40.0],
        temps=[-1.0, -2.0, -3.0, -4.0],
    )
    service = _service(CountingHandler(lambda request: httpx.Response(200, json=payload)))

    observation = await service.get_wind(0.0, 0.0, T)

    assert observation.wind_speed == 3.0
    assert observation.wind_dir == 30.0
    assert observation.temp == -3.0


@pytest.mark.anyio
async def test_first_closest_hour_wins_ties():
    payload = _hourly([T - 600, T + 600], speeds=[1.0, 2.0])
    service = _service(CountingHandler(lambda request: httpx.Response(200, json=payload)))

    observation = await service.get_wind(0.0, 0.0, T)

    assert observation.wind_speed == 1.0


@pytest.mark.anyio
@pytest.mark.parametrize(
    "make_response",
    [
        lambda: httpx.Response(429, text="rate limited"),
        lambda: httpx.Response(503, text="unavailable"),
        lambda: httpx.Response(200, text="not json"),
        lambda: httpx.Response(200, json={"hourly": {"time": []}}),
        lambda: httpx.Response(200, json={"error": True}),
        lambda: httpx.Response(200, json=[1, 2, 3]),
    ],
)
async def test_failures_return_empty_and_are_not_cached(make_response):
    handler = CountingHandler(lambda request: make_response())
    service = _service(handler)

    first = await service.get_wind(1.0, 2.0, T)
    second = await service.get_wind(1.0, 2.0, T)

    assert not first.available
    assert first.wind_speed is None and first.wind_dir is None and first.temp is None
    assert not second.available
    assert handler.call_count == 2
    assert service.cache_size == 0


@pytest.mark.anyio
async def test_transport_error_returns_empty():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("boom", request=request)

    service = _service(handler)

    observation = await service.get_wind(1.0, 2.0, T)

    assert not observation.available
    assert service.cache_size == 0


@pytest.mark.anyio
async def test_timeout_returns_empty():
    def handler(request: httpx.Request):
        raise httpx.ReadTimeout("slow", request=request)

    service = _service(handler)

    assert not (await service.get_wind(1.0, 2.0, T)).available


@pytest.mark.anyio
async def test_cache_entries_are_never_refetched():
    speeds = iter([7.0, 99.0])
    handler = CountingHandler(
        lambda request: httpx.Response(200, json=_hourly([T], speeds=[next(speeds)]))
    )
    service = _service(handler)

    await service.get_wind(1.0, 2.0, T)
    again = await service.get_wind(1.0, 2.0, T + 60)

    assert again.wind_speed == 7.0
    assert handler.call_count == 1


@pytest.mark.anyio
async def test_cache_misses_are_spaced_by_request_interval():
    handler = CountingHandler(lambda request: httpx.Response(200, json=_hourly([T])))
    service = _service(handler, request_interval=0.2)

    await service.get_wind(1.0, 1.0, T)
    await service.get_wind(5.0, 5.0, T)

    assert handler.call_count == 2
    assert handler.sent_at[1] - handler.sent_at[0] >= 0.19


@pytest.mark.anyio
async def test_cache_hits_are_not_delayed():
    handler = CountingHandler(lambda request: httpx.Response(200, json=_hourly([T])))
    service = _service(handler, request_interval=0.5)

    await service.get_wind(1.0, 1.0, T)
    started = time.monotonic()
    await service.get_wind(1.0, 1.0, T)

    assert time.monotonic() - started < 0.25
    assert handler.call_count == 1


@pytest.mark.anyio
async def test_missing_series_values_are_absent():
    payload = {"hourly": {"time": [T], "windspeed_10m": [None], "winddirection_10m": [180]}}
    service = _service(CountingHandler(lambda request: httpx.Response(200, json=payload)))

    observation = await service.get_wind(1.0, 2.0, T)

    assert observation.wind_speed is None
    assert observation.wind_dir == 180
    assert observation.temp is None
    assert not observation.available


@pytest.mark.anyio
async def test_oversized_hour_values_are_ignored():
    payload = _hourly([10**400, T], speeds=[1.0, 2.0])
    service = _service(CountingHandler(lambda request: httpx.Response(200, json=payload)))

    observation = await service.get_wind(0.0, 0.0, T)

    assert observation.wind_speed == 2.0


@pytest.mark.anyio
async def test_concurrent_misses_share_one_fetch():
    speeds = iter([7.0, 99.0])
    calls: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        speed = next(speeds)
        await anyio.sleep(0.1)
        return httpx.Response(200, json=_hourly([T], speeds=[speed]))

    service = _service(handler)
    results: dict[str, WindObservation] = {}

    async def lookup(name: str, lat: float, lon: float) -> None:
        results[name] = await service.get_wind(lat, lon, T)

    async with anyio.create_task_group() as tg:
        tg.start_soon(lookup, "a", 1.0, 2.0)
        tg.start_soon(lookup, "b", 1.05, 2.05)

    assert len(calls) == 1
    assert results["a"].wind_speed == 7.0
    assert results["b"].wind_speed == 7.0
    assert service.cached(1.0, 2.0, T).wind_speed == 7.0


@pytest.mark.anyio
async def test_batch_enrichment_fetches_each_bucket_once():
    calls: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        await anyio.sleep(0.1)
        return httpx.Response(200, json=_hourly([T], speeds=[float(len(calls))]))

    service = _service(handler)
    tracks = [
        BalloonTrack(id="a", points=[BalloonPoint(ts=T, lat=1.0, lon=2.0)]),
        BalloonTrack(id="b", points=[BalloonPoint(ts=T, lat=1.01, lon=2.01)]),
    ]

    await WindEnricher(service).enrich_tracks(tracks)

    assert len(calls) == 1
    assert tracks[0].points[0].wind_speed == tracks[1].points[0].wind_speed == 1.0


def test_explicit_zero_timeout_is_kept():
    assert WindService(timeout=0).timeout == 0
