from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError

from serp_tasks.errors import UpstreamError
from serp_tasks.services.dataforseo import SubmittedTask, TaskResult


class FakeRedis:
    """In-memory stand-in for the async Redis commands the app uses."""

    def __init__(self):
        self.strings: dict[str, str] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.counters: dict[str, int] = {}
        self.expiries: dict[str, int] = {}
        self.down = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("connection refused")

    async def set(self, key, value, nx=False, xx=False):
        self._check()
        return self._set(key, value, nx, xx)

    def _set(self, key, value, nx=False, xx=False):
        if nx and key in self.strings:
            return None
        if xx and key not in self.strings:
            return None
        self.strings[key] = value
        return True

    async def get(self, key):
        self._check()
        return self.strings.get(key)

    async def mget(self, keys):
        self._check()
        return [self.strings.get(k) for k in keys]

    async def zadd(self, key, mapping, nx=False):
        self._check()
        return self._zadd(key, mapping, nx)

    def _zadd(self, key, mapping, nx=False):
        zset = self.zsets.setdefault(key, {})
        added = 0
        for member, score in mapping.items():
            if member not in zset:
                added += 1
            elif nx:
                continue
            zset[member] = score
        return added

    async def zcard(self, key):
        self._check()
        return len(self.zsets.get(key, {}))

    async def zrevrange(self, key, start, end):
        self._check()
        members = sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]), reverse=True)
        ids = [m for m, _ in members]
        return ids[start:] if end == -1 else ids[start:end + 1]

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        pass

    def pipeline(self, transaction=True):
        return _FakePipeline(self)


class _FakePipeline:
    def __init__(self, owner: FakeRedis):
        self.owner = owner
        self.ops: list[tuple[str, tuple]] = []

    def set(self, key, value, nx=False, xx=False):
        self.ops.append(("set", (key, value, nx, xx)))
        return self

    def zadd(self, key, mapping, nx=False):
        self.ops.append(("zadd", (key, mapping, nx)))
        return self

    def incr(self, key):
        self.ops.append(("incr", (key,)))
        return self

    def expire(self, key, seconds):
        self.ops.append(("expire", (key, seconds)))
        return self

    async def execute(self):
        # Nothing is applied when the connection is down, like MULTI/EXEC.
        self.owner._check()
        out = []
        for name, args in self.ops:
            if name == "set":
                out.append(self.owner._set(*args))
            elif name == "zadd":
                out.append(self.owner._zadd(*args))
            elif name == "incr":
                self.owner.counters[args[0]] = self.owner.counters.get(args[0], 0) + 1
                out.append(self.owner.counters[args[0]])
            else:
                self.owner.expiries[args[0]] = args[1]
                out.append(True)
        self.ops = []
        return out


class FakeProvider:
    """Records calls; answers with queued results."""

    def __init__(self, task_id: str = "task-1", status_message: str | None = "Task Created."):
        self.task_id = task_id
        self.status_message = status_message
        self.submitted: list[tuple] = []
        self.fetched: list[str] = []
        self.result: Any = None
        self.fail_with: UpstreamError | None = None
        self.closed = False

    async def submit_task(self, keyword, language_code, location_code, priority=1):
        self.submitted.append((keyword, language_code, location_code, priority))
        if self.fail_with:
            raise self.fail_with
        raw = {"status_code": 20000, "tasks": [{"id": self.task_id, "status_message": self.status_message}]}
        return SubmittedTask(task_id=self.task_id, status_message=self.status_message, raw=raw)

    async def fetch_task_result(self, task_id):
        self.fetched.append(task_id)
        if self.fail_with:
            raise self.fail_with
        raw = {"tasks": [{"id": task_id, "result": self.result}]}
        return TaskResult(result=self.result, raw=raw)

    async def list_languages(self):
        if self.fail_with:
            raise self.fail_with
        return {"tasks": [{"result": [{"language_name": "English", "language_code": "en"}]}]}

    async def list_locations(self):
        if self.fail_with:
            raise self.fail_with
        return {"tasks": [{"result": [{"location_name": "United States", "location_code": 2840}]}]}

    async def aclose(self):
        self.closed = True
