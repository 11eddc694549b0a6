from __future__ import annotations

import logging
import math
from typing import Any, Optional

from ..errors import InvalidUpstreamResponse, NotFound, StoreError, UpstreamError, ValidationError
from ..models import NewTaskRequest
from ..storage.repo import Repo
from ..storage.schema import COMPLETED, TaskRecord
from .dataforseo import DataForSEOClient

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "created"

# Stored documents are JSON with 64-bit integers.
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1


class TaskCoordinator:
    """Creates tasks at the provider and moves stored records to ``completed``.

    Results arrive either by polling (``refresh``) or by provider postback
    (``apply_postback``); both end in ``apply_result``.
    """

    def __init__(self, repo: Repo, provider: DataForSEOClient):
        self.repo = repo
        self.provider = provider

    async def create(self, req: NewTaskRequest) -> TaskRecord:
        keyword = _clean(req.keyword)
        language_code = _clean(req.language_code)
        if not keyword or not language_code or _clean(req.location_code) is None:
            raise ValidationError(
                "Missing required fields: keyword, language_code, and location_code are required."
            )
        location_code = _parse_int(req.location_code)
        if location_code is None:
            raise ValidationError("Invalid location_code format.")
        priority = 1 if req.priority is None else _parse_int(req.priority)
        if priority is None:
            raise ValidationError("Invalid priority format.")

        try:
            submitted = await self.provider.submit_task(keyword, language_code, location_code, priority)
        except InvalidUpstreamResponse:
            raise
        except UpstreamError as exc:
            raise UpstreamError(exc.provider_message or "Task creation failed.", exc.provider_message) from exc

        record = TaskRecord(
            task_id=submitted.task_id,
            keyword=keyword,
            language_code=language_code,
            language_name=_clean(req.language_name),
            location_code=location_code,
            location_name=_clean(req.location_name),
            priority=priority,
            status=submitted.status_message or DEFAULT_STATUS,
            raw_response=submitted.raw,
        )
        try:
            record = await self.repo.insert(record)
        except StoreError:
            # The provider already holds this task; there is no local record for it.
            logger.error("Task %s was submitted but could not be stored", submitted.task_id)
            raise
        logger.info("Created task %s (%r, %s/%s)", record.task_id, keyword, language_code, location_code)
        return record

    async def refresh(self, task_id: str) -> TaskRecord:
        record = await self.repo.get(task_id)
        if record is None:
            raise NotFound("Task not found.")

        try:
            fetched = await self.provider.fetch_task_result(record.task_id)
        except UpstreamError as exc:
            raise UpstreamError(exc.provider_message or "Failed to fetch task.", exc.provider_message) from exc

        if not fetched.ready:
            return record
        return await self.apply_result(record, fetched.result, raw_response=fetched.raw)

    async def apply_postback(self, body: Any) -> Optional[TaskRecord]:
        task_id, result = _postback_fields(body)
        if not task_id:
            raise ValidationError("Missing task_id.")

        record = await self.repo.get(task_id)
        if record is None:
            logger.warning("Postback for unknown task %s ignored", task_id)
            return None
        return await self.apply_result(record, result)

    async def apply_result(self, record: TaskRecord, result: Any, raw_response: Any = None) -> TaskRecord:
        if not result:
            logger.warning("Empty result for task %s; record left as %s", record.task_id, record.status)
            return record

        update: dict[str, Any] = {"result": result, "status": COMPLETED}
        if raw_response is not None:
            update["raw_response"] = raw_response
        if record.completed:
            logger.info("Task %s already completed; overwriting result", record.task_id)
        record = await self.repo.save(record.model_copy(update=update))
        logger.info("Task %s completed", record.task_id)
        return record


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    else:
        try:
            parsed = float(str(value).strip())
        except ValueError:
            return None
        if not math.isfinite(parsed) or not parsed.is_integer():
            return None
        number = int(parsed)
    if not INT64_MIN <= number <= INT64_MAX:
        return None
    return number


def _postback_fields(body: Any) -> tuple[Optional[str], Any]:
    if not isinstance(body, dict):
        return None, None
    tasks = body.get("tasks")
    if not isinstance(tasks, list) or not tasks or not isinstance(tasks[0], dict):
        return None, None
    task_id = tasks[0].get("id")
    return (str(task_id) if task_id else None), tasks[0].get("result")
