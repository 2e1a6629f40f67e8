import httpx
import pytest

from src.patrol.services.stores_client import DataLoadError, StoresClient

URL = "http://stores.test/api/stores"

PAYLOAD = {"臺北市": {"信義區": {"data": [{"name": "夾夾樂 信義店", "lat": 25.036, "lng": 121.567}]}}}


def _client(handler, sleeps: list, max_retries: int = 3) -> StoresClient:
    return StoresClient(
        url=URL,
        max_retries=max_retries,
        backoff_seconds=1.0,
        transport=httpx.MockTransport(handler),
        sleep=sleeps.append,
    )


def test_fetch_returns_payload_without_retrying():
    sleeps = []
    client = _client(lambda request: httpx.Response(200, json=PAYLOAD), sleeps)

    assert client.fetch() == PAYLOAD
    assert sleeps == []


def test_fetch_stores_flattens_payload():
    client = _client(lambda request: httpx.Response(200, json=PAYLOAD), [])

    stores = client.fetch_stores()

    assert [(store.name, store.region, store.subregion) for store in stores] == [("夾夾樂 信義店", "臺北市", "信義區")]


def test_fetch_retries_with_exponential_backoff():
    sleeps = []
    responses = iter([httpx.Response(503), httpx.Response(502), httpx.Response(200, json=PAYLOAD)])

    client = _client(lambda request: next(responses), sleeps)

    assert client.fetch() == PAYLOAD
    assert sleeps == [1.0, 2.0]


def test_fetch_gives_up_after_max_retries():
    sleeps = []
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        return httpx.Response(500)

    client = _client(handler, sleeps, max_retries=2)

    with pytest.raises(DataLoadError) as excinfo:
        client.fetch()

    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]
    assert excinfo.value.attempts == 3
    assert excinfo.value.source == URL


def test_fetch_treats_invalid_json_as_failure():
    client = _client(lambda request: httpx.Response(200, content=b"{not json"), [], max_retries=0)

    with pytest.raises(DataLoadError):
        client.fetch()


def test_fetch_retries_transport_errors():
    sleeps = []
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=PAYLOAD)

    client = _client(handler, sleeps)

    assert client.fetch() == PAYLOAD
    assert sleeps == [1.0]
