import base64
import json

import httpx
import pytest

from serp_tasks.errors import InvalidUpstreamResponse, UpstreamError
from serp_tasks.services.dataforseo import DataForSEOClient


def _client(handler, **kwargs) -> DataForSEOClient:
    return DataForSEOClient("login", "secret", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_submit_task_posts_singleton_batch_with_basic_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "status_code": 20000,
            "tasks": [{"id": "07031739-1535-0139-0000-8bb1e4a5b3c1", "status_message": "Task Created."}],
        })

    client = _client(handler)
    submitted = await client.submit_task("shoes", "en", 2840, 1)
    await client.aclose()

    assert seen["path"] == "/v3/serp/google/organic/task_post"
    assert seen["auth"] == "Basic " + base64.b64encode(b"login:secret").decode()
    assert seen["body"] == [{"keyword": "shoes", "language_code": "en", "location_code": 2840, "priority": 1}]
    assert submitted.task_id == "07031739-1535-0139-0000-8bb1e4a5b3c1"
    assert submitted.status_message == "Task Created."
    assert submitted.raw["status_code"] == 20000


@pytest.mark.asyncio
async def test_submit_task_requests_postback_when_configured():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"tasks": [{"id": "t1"}]})

    client = _client(handler, postback_url="https://example.com/api/postback")
    await client.submit_task("shoes", "en", 2840)

    assert bodies[0][0]["postback_url"] == "https://example.com/api/postback"
    assert bodies[0][0]["postback_data"] == "advanced"


@pytest.mark.parametrize("body", [{"tasks": []}, {"tasks": [{"status_message": "x"}]}, {"status_code": 20000}])
@pytest.mark.asyncio
async def test_submit_task_without_task_id_is_invalid(body):
    client = _client(lambda request: httpx.Response(200, json=body))

    with pytest.raises(InvalidUpstreamResponse):
        await client.submit_task("shoes", "en", 2840)


@pytest.mark.asyncio
async def test_http_error_carries_provider_message():
    client = _client(lambda request: httpx.Response(401, json={"status_code": 40100, "status_message": "You are not authorized."}))

    with pytest.raises(UpstreamError) as exc_info:
        await client.list_languages()

    assert exc_info.value.provider_message == "You are not authorized."


@pytest.mark.asyncio
async def test_transport_error_is_upstream_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(UpstreamError) as exc_info:
        await _client(handler).list_locations()

    assert exc_info.value.provider_message is None


@pytest.mark.asyncio
async def test_fetch_task_result_pending_and_ready():
    responses = [
        {"tasks": [{"id": "t1", "status_message": "Task In Queue.", "result": None}]},
        {"tasks": [{"id": "t1", "status_message": "Ok.", "result": [{"keyword": "shoes", "items": []}]}]},
    ]
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json=responses[len(paths) - 1])

    client = _client(handler)
    pending = await client.fetch_task_result("t1")
    ready = await client.fetch_task_result("t1")

    assert paths[0] == "/v3/serp/google/organic/task_get/advanced/t1"
    assert not pending.ready and pending.result is None
    assert ready.ready and ready.result[0]["keyword"] == "shoes"
