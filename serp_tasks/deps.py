from dataclasses import dataclass

import redis.asyncio as redis
from fastapi import Request

from .config import Settings
from .errors import PayloadTooLarge
from .services.dataforseo import DataForSEOClient
from .services.lifecycle import TaskCoordinator
from .services.query import TaskQueries
from .services.ratelimit import FixedWindowLimiter
from .storage.repo import Repo


@dataclass
class Services:
    repo: Repo
    provider: DataForSEOClient
    coordinator: TaskCoordinator
    queries: TaskQueries
    limiter: FixedWindowLimiter

    async def aclose(self) -> None:
        await self.provider.aclose()
        await self.repo.close()


def build_services(settings: Settings, client: redis.Redis | None = None,
                   provider: DataForSEOClient | None = None) -> Services:
    client = client if client is not None else redis.from_url(settings.redis_url, decode_responses=True)
    provider = provider if provider is not None else DataForSEOClient.from_settings(settings)
    repo = Repo(client)
    return Services(
        repo=repo,
        provider=provider,
        coordinator=TaskCoordinator(repo, provider),
        queries=TaskQueries(repo, settings.tasks_page_size, settings.search_page_size),
        limiter=FixedWindowLimiter(client, settings.rate_limit_window_seconds, settings.rate_limit_max_requests),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def rate_limit(scope: str):
    async def _check(request: Request):
        client_id = request.client.host if request.client else "unknown"
        await get_services(request).limiter.hit(scope, client_id)
    return _check


async def read_body(request: Request) -> bytes:
    """Request body, refused with 413 past ``max_body_bytes``."""
    limit = request.app.state.settings.max_body_bytes
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise PayloadTooLarge("Request body too large.")
    body = await request.body()
    if len(body) > limit:
        raise PayloadTooLarge("Request body too large.")
    return body


async def body_limit(request: Request) -> None:
    await read_body(request)
