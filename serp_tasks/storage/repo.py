import logging
from typing import AsyncIterator

import orjson
import redis.asyncio as redis
from redis.exceptions import RedisError

from ..errors import StoreError
from .schema import TaskRecord, utcnow

logger = logging.getLogger(__name__)

CREATED_INDEX = "tasks:by_created"


class Repo:
    """Task documents in Redis.

    Each task is one JSON document under ``task:{task_id}``; the sorted set
    ``tasks:by_created`` (score = creation time) gives newest-first order.
    A create writes the document and its index entry in one MULTI block.
    """

    def __init__(self, client: redis.Redis):
        self.r = client

    def _key(self, task_id: str) -> str:
        return f"task:{task_id}"

    async def insert(self, rec: TaskRecord) -> TaskRecord:
        now = utcnow()
        rec = rec.model_copy(update={"created_at": now, "updated_at": now})
        payload = self._dumps(rec)
        try:
            # Document and index entry land together or not at all.
            pipe = self.r.pipeline(transaction=True)
            pipe.set(self._key(rec.task_id), payload, nx=True)
            pipe.zadd(CREATED_INDEX, {rec.task_id: now.timestamp()}, nx=True)
            created, _ = await pipe.execute()
        except RedisError as exc:
            logger.error("Failed to insert task %s: %s", rec.task_id, exc)
            raise StoreError("Failed to store task.") from exc
        if not created:
            raise StoreError(f"Task {rec.task_id} already exists.")
        return rec

    async def get(self, task_id: str) -> TaskRecord | None:
        try:
            raw = await self.r.get(self._key(task_id))
        except RedisError as exc:
            logger.error("Failed to load task %s: %s", task_id, exc)
            raise StoreError("Failed to load task.") from exc
        if not raw:
            return None
        return TaskRecord.from_document(orjson.loads(raw))

    async def save(self, rec: TaskRecord) -> TaskRecord:
        rec = rec.model_copy(update={"updated_at": utcnow()})
        payload = self._dumps(rec)
        try:
            await self.r.set(self._key(rec.task_id), payload)
        except RedisError as exc:
            logger.error("Failed to save task %s: %s", rec.task_id, exc)
            raise StoreError("Failed to save task.") from exc
        return rec

    async def count(self) -> int:
        try:
            return await self.r.zcard(CREATED_INDEX)
        except RedisError as exc:
            raise StoreError("Failed to count tasks.") from exc

    async def page(self, offset: int, limit: int) -> list[TaskRecord]:
        """Records ``[offset, offset + limit)`` ordered newest first."""
        if limit <= 0:
            return []
        try:
            ids = await self.r.zrevrange(CREATED_INDEX, offset, offset + limit - 1)
            return await self._load_many(ids)
        except RedisError as exc:
            raise StoreError("Failed to fetch tasks.") from exc

    async def iter_newest_first(self, batch_size: int = 200) -> AsyncIterator[TaskRecord]:
        offset = 0
        while True:
            batch = await self.page(offset, batch_size)
            if not batch:
                return
            for rec in batch:
                yield rec
            offset += batch_size

    async def ping(self) -> bool:
        try:
            return bool(await self.r.ping())
        except RedisError as exc:
            logger.warning("Redis ping failed: %s", exc)
            return False

    async def close(self) -> None:
        await self.r.aclose()

    async def _load_many(self, ids: list[str]) -> list[TaskRecord]:
        if not ids:
            return []
        docs = await self.r.mget([self._key(i) for i in ids])
        # Index entries without a document are skipped.
        return [TaskRecord.from_document(orjson.loads(d)) for d in docs if d]

    @staticmethod
    def _dumps(rec: TaskRecord) -> str:
        try:
            return orjson.dumps(rec.to_document()).decode()
        except orjson.JSONEncodeError as exc:
            logger.error("Task %s cannot be serialized: %s", rec.task_id, exc)
            raise StoreError("Failed to store task.") from exc
