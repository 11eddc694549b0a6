from datetime import datetime, timedelta, timezone
from pathlib import Path
import itertools
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from serp_tasks.config import Settings
from serp_tasks.deps import build_services

from fakes import FakeProvider, FakeRedis


@pytest.fixture()
def settings():
    return Settings(
        redis_url="redis://unused",
        dataforseo_login="login",
        dataforseo_password="secret",
        tasks_page_size=3,
        search_page_size=2,
        rate_limit_window_seconds=10,
        rate_limit_max_requests=5,
        max_body_bytes=64 * 1024,
    )


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def provider():
    return FakeProvider()


@pytest.fixture()
def services(settings, fake_redis, provider):
    return build_services(settings, client=fake_redis, provider=provider)


@pytest.fixture(autouse=True)
def ticking_clock(monkeypatch):
    """Every store write is one second after the previous one."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = itertools.count()
    monkeypatch.setattr(
        "serp_tasks.storage.repo.utcnow",
        lambda: start + timedelta(seconds=next(ticks)),
    )
