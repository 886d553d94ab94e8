"""Shared fixtures and test doubles."""

from collections import defaultdict

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import WatchError

from impact_cache.entities import AnalysisResult, ImpactMetric
from impact_cache.exceptions import AnalyzerError, CacheUnavailableError


def make_result(label: str = "C", summary: str = "Moderate impact.") -> AnalysisResult:
    return AnalysisResult(
        overall_score=label,
        summary=summary,
        breakdown=(
            ImpactMetric(metric="Carbon Footprint", score=4, explanation="Fossil-based plastic."),
            ImpactMetric(metric="Recyclability", score=6.5, explanation="Widely recyclable PET."),
        ),
        recommendations=("Use a reusable bottle.", "Recycle after use."),
    )


@pytest.fixture
def sample_result() -> AnalysisResult:
    """A fixed analysis result."""
    return make_result()


class StubAnalyzer:
    """Analyzer returning a fixed result and recording every call."""

    def __init__(self, result: AnalysisResult | None = None, error: Exception | None = None):
        self.result = result or make_result()
        self.error = error
        self.calls: list[str] = []

    @property
    def model_name(self) -> str:
        return "stub-model"

    async def analyze(self, description: str) -> AnalysisResult:
        self.calls.append(description)
        if self.error is not None:
            raise self.error
        return self.result

    async def is_available(self) -> bool:
        return True


class FailingCache:
    """CacheStore whose lookups and/or stores raise CacheUnavailableError."""

    def __init__(self, fail_lookup: bool = True, fail_store: bool = True):
        self.fail_lookup = fail_lookup
        self.fail_store = fail_store
        self.stored: list[tuple[str, AnalysisResult]] = []

    async def store(self, description, result):
        if self.fail_store:
            raise CacheUnavailableError("quota exceeded")
        self.stored.append((description, result))

    async def lookup(self, description):
        if self.fail_lookup:
            raise CacheUnavailableError("storage unavailable")
        return None

    async def list_all(self):
        raise CacheUnavailableError("storage unavailable")

    async def count_all(self):
        raise CacheUnavailableError("storage unavailable")

    async def health_check(self):
        return False

    async def get_stats(self):
        raise CacheUnavailableError("storage unavailable")


class FakePipeline:
    """Pipeline stand-in.

    Commands are queued and run on execute(), except between watch() and
    multi(), where they run immediately. A queued batch is checked for
    failures before any command runs, matching MULTI/EXEC atomicity.
    """

    def __init__(self, client: "FakeRedis"):
        self._client = client
        self._commands: list[tuple[str, tuple]] = []
        self._buffering = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self._commands = []
        self._buffering = True

    async def watch(self, *keys):
        self._client._check("watch")
        self._buffering = False

    def multi(self):
        self._buffering = True

    def _queue_or_run(self, name, *args):
        if not self._buffering:
            return getattr(self._client, name)(*args)
        self._commands.append((name, args))
        return self

    def hget(self, key, field):
        return self._queue_or_run("hget", key, field)

    def hgetall(self, key):
        return self._queue_or_run("hgetall", key)

    def hset(self, key, field, value):
        return self._queue_or_run("hset", key, field, value)

    def rpush(self, key, *values):
        return self._queue_or_run("rpush", key, *values)

    def lrem(self, key, count, value):
        return self._queue_or_run("lrem", key, count, value)

    def delete(self, *keys):
        return self._queue_or_run("delete", *keys)

    async def execute(self):
        commands, self._commands = self._commands, []
        if self._client.watch_conflicts:
            self._client.watch_conflicts -= 1
            raise WatchError("Watched variable changed.")
        for name, _ in commands:
            self._client._check(name)
        results = []
        for name, args in commands:
            results.append(await getattr(self._client, name)(*args))
        return results


class FakeRedis:
    """Dict-backed stand-in for the subset of ``redis.asyncio.Redis`` used
    by RedisCacheRepository. Values are stored as strings, matching a client
    created with ``decode_responses=True``.

    ``fail`` makes every command raise; ``fail_on`` names single commands
    that raise. ``watch_conflicts`` makes that many transactions abort with
    WatchError.
    """

    def __init__(self, fail: bool = False, fail_on: set[str] | None = None):
        self.fail = fail
        self.fail_on = set(fail_on or ())
        self.watch_conflicts = 0
        self.strings: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = defaultdict(dict)
        self.lists: dict[str, list[str]] = defaultdict(list)
        self.closed = False

    def _check(self, command: str):
        if self.fail or command in self.fail_on:
            raise RedisConnectionError("Connection refused")

    async def set(self, key, value, nx=False):
        self._check("set")
        if nx and key in self.strings:
            return None
        self.strings[key] = str(value)
        return True

    async def get(self, key):
        self._check("get")
        return self.strings.get(key)

    async def incr(self, key):
        self._check("incr")
        value = int(self.strings.get(key, "0")) + 1
        self.strings[key] = str(value)
        return value

    async def hset(self, key, field=None, value=None, mapping=None):
        self._check("hset")
        items = dict(mapping or {})
        if field is not None:
            items[field] = value
        self.hashes[key].update({k: str(v) for k, v in items.items()})
        return len(items)

    async def hget(self, key, field):
        self._check("hget")
        return self.hashes.get(key, {}).get(field)

    async def hgetall(self, key):
        self._check("hgetall")
        return dict(self.hashes.get(key, {}))

    async def hlen(self, key):
        self._check("hlen")
        return len(self.hashes.get(key, {}))

    async def delete(self, *keys):
        self._check("delete")
        count = 0
        for key in keys:
            for store in (self.strings, self.hashes, self.lists):
                if key in store:
                    del store[key]
                    count += 1
        return count

    async def rpush(self, key, *values):
        self._check("rpush")
        self.lists[key].extend(str(v) for v in values)
        return len(self.lists[key])

    async def lrem(self, key, count, value):
        self._check("lrem")
        items = self.lists.get(key, [])
        kept = [item for item in items if item != str(value)]
        removed = len(items) - len(kept)
        if key in self.lists:
            self.lists[key] = kept
        return removed

    async def lrange(self, key, start, end):
        self._check("lrange")
        items = self.lists.get(key, [])
        return list(items[start:] if end == -1 else items[start : end + 1])

    async def ping(self):
        self._check("ping")
        return True

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def stub_analyzer() -> StubAnalyzer:
    return StubAnalyzer()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def analyzer_error() -> AnalyzerError:
    return AnalyzerError("Gemini API error: connection reset")
