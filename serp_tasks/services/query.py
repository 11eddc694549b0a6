import math
from typing import Any

from ..errors import NotFound
from ..models import TaskPage
from ..storage.repo import Repo
from ..storage.schema import TaskRecord


def parse_page(raw: Any) -> int:
    """1-based page number; anything absent, non-numeric or below 1 is page 1."""
    try:
        page = int(str(raw).strip())
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def matches(rec: TaskRecord, key: str) -> bool:
    needle = key.casefold()
    fields = (
        rec.keyword,
        rec.language_code,
        rec.language_name,
        rec.location_name,
        None if rec.location_code is None else str(rec.location_code),
        rec.status,
    )
    return any(f and needle in f.casefold() for f in fields)


class TaskQueries:
    def __init__(self, repo: Repo, page_size: int = 10, search_page_size: int = 2):
        self.repo = repo
        self.page_size = page_size
        self.search_page_size = search_page_size

    async def list(self, page: int = 1) -> TaskPage:
        total = await self.repo.count()
        offset = (page - 1) * self.page_size
        results = await self.repo.page(offset, self.page_size) if offset < total else []
        return TaskPage(page=page, total_pages=math.ceil(total / self.page_size), results=results)

    async def search(self, key: str, page: int = 1) -> TaskPage:
        hits = [rec async for rec in self.repo.iter_newest_first() if matches(rec, key)]
        if not hits:
            raise NotFound("No matching tasks found.")
        start = (page - 1) * self.search_page_size
        return TaskPage(
            page=page,
            total_pages=math.ceil(len(hits) / self.search_page_size),
            results=hits[start:start + self.search_page_size],
        )
