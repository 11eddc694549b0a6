from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import Settings
from ..errors import InvalidUpstreamResponse, UpstreamError

logger = logging.getLogger(__name__)

LANGUAGES_PATH = "/v3/serp/google/languages"
LOCATIONS_PATH = "/v3/serp/google/locations"
TASK_POST_PATH = "/v3/serp/google/organic/task_post"
TASK_GET_PATH = "/v3/serp/google/organic/task_get/advanced/{task_id}"


@dataclass
class SubmittedTask:
    task_id: str
    status_message: Optional[str]
    raw: Any


@dataclass
class TaskResult:
    result: Any
    raw: Any

    @property
    def ready(self) -> bool:
        return bool(self.result)


class DataForSEOClient:
    def __init__(
        self,
        login: str,
        password: str,
        base_url: str = "https://api.dataforseo.com",
        timeout: float = 30.0,
        postback_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.postback_url = postback_url
        self._http = httpx.AsyncClient(
            base_url=base_url,
            auth=httpx.BasicAuth(login, password),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DataForSEOClient":
        return cls(
            settings.dataforseo_login,
            settings.dataforseo_password,
            base_url=settings.dataforseo_base_url,
            timeout=settings.provider_timeout_seconds,
            postback_url=settings.postback_url,
        )

    async def list_languages(self) -> Any:
        return await self._request("GET", LANGUAGES_PATH)

    async def list_locations(self) -> Any:
        return await self._request("GET", LOCATIONS_PATH)

    async def submit_task(self, keyword: str, language_code: str, location_code: int, priority: int = 1) -> SubmittedTask:
        task: dict[str, Any] = {
            "keyword": keyword,
            "language_code": language_code,
            "location_code": location_code,
            "priority": priority,
        }
        if self.postback_url:
            task["postback_url"] = self.postback_url
            task["postback_data"] = "advanced"

        data = await self._request("POST", TASK_POST_PATH, json=[task])
        api_task = self._first_task(data)
        if not api_task or not api_task.get("id"):
            raise InvalidUpstreamResponse("Invalid response from DataForSEO API.")
        return SubmittedTask(
            task_id=str(api_task["id"]),
            status_message=api_task.get("status_message"),
            raw=data,
        )

    async def fetch_task_result(self, task_id: str) -> TaskResult:
        data = await self._request("GET", TASK_GET_PATH.format(task_id=task_id))
        api_task = self._first_task(data) or {}
        return TaskResult(result=api_task.get("result"), raw=data)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = await self._http.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            provider_message = self._status_message(exc.response)
            logger.error("DataForSEO %s %s -> %s: %s", method, path, exc.response.status_code, provider_message)
            raise UpstreamError(provider_message or "Upstream request failed", provider_message) from exc
        except httpx.HTTPError as exc:
            logger.error("DataForSEO %s %s failed: %r", method, path, exc)
            raise UpstreamError("Upstream request failed") from exc
        except ValueError as exc:
            logger.error("DataForSEO %s %s returned a non-JSON body", method, path)
            raise InvalidUpstreamResponse("Invalid response from DataForSEO API.") from exc

    @staticmethod
    def _first_task(data: Any) -> dict | None:
        if not isinstance(data, dict):
            return None
        tasks = data.get("tasks") or []
        if not tasks or not isinstance(tasks[0], dict):
            return None
        return tasks[0]

    @staticmethod
    def _status_message(resp: httpx.Response) -> Optional[str]:
        try:
            body = resp.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("status_message")
        return None
