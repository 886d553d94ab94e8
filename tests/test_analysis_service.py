"""Tests for the analysis service (cache-then-analyzer orchestration)."""

import asyncio
import gc
import logging

import pytest

from conftest import FailingCache, FakeRedis, StubAnalyzer, make_result
from impact_cache.exceptions import AnalysisFailedError, AnalyzerError, InvalidDescriptionError
from impact_cache.repositories import InMemoryCacheRepository, RedisCacheRepository
from impact_cache.services import AnalysisService


@pytest.fixture(params=["memory", "redis"])
def cache(request):
    """Run each test against both cache backends."""
    if request.param == "memory":
        return InMemoryCacheRepository.create()
    return RedisCacheRepository.create(redis_client=FakeRedis(), key_prefix="svc")


@pytest.fixture
def service(cache, stub_analyzer):
    return AnalysisService.create(cache=cache, analyzer=stub_analyzer, coalesce_requests=False)


@pytest.mark.asyncio
async def test_cache_hit_skips_analyzer(service, cache, stub_analyzer, sample_result):
    await cache.store("Plastic Water Bottle", sample_result)

    outcome = await service.resolve("  plastic water bottle  ")

    assert outcome.result == sample_result
    assert outcome.cached is True
    assert stub_analyzer.calls == []


@pytest.mark.asyncio
async def test_miss_calls_analyzer_and_populates_cache(service, cache, stub_analyzer):
    outcome = await service.resolve("Steel Water Bottle")

    assert outcome.result == stub_analyzer.result
    assert outcome.cached is False
    assert stub_analyzer.calls == ["Steel Water Bottle"]
    assert await cache.lookup("steel water bottle") == stub_analyzer.result


@pytest.mark.asyncio
async def test_second_request_is_served_from_cache(service, stub_analyzer):
    await service.resolve("Steel Water Bottle")
    outcome = await service.resolve("STEEL WATER BOTTLE ")

    assert outcome.cached is True
    assert len(stub_analyzer.calls) == 1
    assert service.metrics.cache_hits == 1
    assert service.metrics.cache_misses == 1


@pytest.mark.asyncio
async def test_analyzer_failure_is_fatal_and_leaves_cache_unchanged(cache, analyzer_error):
    analyzer = StubAnalyzer(error=analyzer_error)
    service = AnalysisService.create(cache=cache, analyzer=analyzer, coalesce_requests=False)

    with pytest.raises(AnalysisFailedError) as exc_info:
        await service.resolve("Steel Water Bottle")

    assert exc_info.value.__cause__ is analyzer_error
    assert "connection reset" in str(exc_info.value)
    assert await cache.list_all() == []
    assert await cache.lookup("steel water bottle") is None
    assert service.metrics.analyzer_failures == 1


@pytest.mark.asyncio
async def test_unexpected_analyzer_exception_becomes_analysis_failed(cache):
    analyzer = StubAnalyzer(error=RuntimeError("boom"))
    service = AnalysisService.create(cache=cache, analyzer=analyzer, coalesce_requests=False)

    with pytest.raises(AnalysisFailedError, match="boom"):
        await service.resolve("Glass Jar")


@pytest.mark.asyncio
async def test_blank_description_is_rejected(service, stub_analyzer):
    with pytest.raises(InvalidDescriptionError):
        await service.resolve("   ")

    assert stub_analyzer.calls == []
    assert service.metrics.total_requests == 0


@pytest.mark.asyncio
async def test_store_failure_still_returns_fresh_result(stub_analyzer, caplog):
    cache = FailingCache(fail_lookup=False, fail_store=True)
    service = AnalysisService.create(cache=cache, analyzer=stub_analyzer, coalesce_requests=False)

    with caplog.at_level(logging.WARNING, logger="impact_cache.services.analysis_service"):
        outcome = await service.resolve("Steel Water Bottle")

    assert outcome.result == stub_analyzer.result
    assert outcome.cached is False
    assert "Failed to save to storage" in caplog.text
    assert service.metrics.cache_errors == 1


@pytest.mark.asyncio
async def test_lookup_failure_falls_through_to_analyzer(stub_analyzer, caplog):
    cache = FailingCache(fail_lookup=True, fail_store=False)
    service = AnalysisService.create(cache=cache, analyzer=stub_analyzer, coalesce_requests=False)

    with caplog.at_level(logging.WARNING, logger="impact_cache.services.analysis_service"):
        outcome = await service.resolve("Steel Water Bottle")

    assert outcome.result == stub_analyzer.result
    assert stub_analyzer.calls == ["Steel Water Bottle"]
    assert cache.stored == [("Steel Water Bottle", stub_analyzer.result)]
    assert "Storage error" in caplog.text


@pytest.mark.asyncio
async def test_malformed_cache_entry_is_treated_as_miss(stub_analyzer):
    fake_redis = FakeRedis()
    cache = RedisCacheRepository.create(redis_client=fake_redis, key_prefix="svc")
    await cache.store("Glass Jar", make_result("A"))
    fake_redis.hashes["svc:queries:1"]["geminiAnswer"] = "garbage"
    service = AnalysisService.create(cache=cache, analyzer=stub_analyzer, coalesce_requests=False)

    outcome = await service.resolve("glass jar")

    assert outcome.cached is False
    assert outcome.result == stub_analyzer.result
    assert stub_analyzer.calls == ["glass jar"]


@pytest.mark.asyncio
@pytest.mark.parametrize("damage", ["corrupt", "delete"])
async def test_unreadable_entry_is_repaired_by_next_analysis(stub_analyzer, damage):
    fake_redis = FakeRedis()
    cache = RedisCacheRepository.create(redis_client=fake_redis, key_prefix="svc")
    await cache.store("Glass Jar", make_result("A"))
    if damage == "corrupt":
        fake_redis.hashes["svc:queries:1"]["geminiAnswer"] = "garbage"
    else:
        del fake_redis.hashes["svc:queries:1"]
    service = AnalysisService.create(cache=cache, analyzer=stub_analyzer, coalesce_requests=False)

    first = await service.resolve("Glass Jar")
    second = await service.resolve("glass jar")

    assert first.cached is False
    assert second.cached is True
    assert second.result == stub_analyzer.result
    assert len(stub_analyzer.calls) == 1
    assert service.metrics.cache_errors == (1 if damage == "corrupt" else 0)


@pytest.mark.asyncio
async def test_concurrent_misses_are_not_coalesced_by_default(cache):
    analyzer = SlowAnalyzer()
    service = AnalysisService.create(cache=cache, analyzer=analyzer, coalesce_requests=False)

    await asyncio.gather(service.resolve("Glass Jar"), service.resolve("glass jar"))

    assert analyzer.call_count == 2
    assert len(await cache.list_all()) == 1


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_call_when_coalescing(cache):
    analyzer = SlowAnalyzer()
    service = AnalysisService.create(cache=cache, analyzer=analyzer, coalesce_requests=True)

    first, second = await asyncio.gather(
        service.resolve("Glass Jar"),
        service.resolve("  GLASS JAR"),
    )

    assert analyzer.call_count == 1
    assert first.result == second.result
    assert service.metrics.analyzer_calls == 1
    assert service.metrics.cache_misses == 2


@pytest.mark.asyncio
async def test_coalesced_failure_reaches_every_caller(cache):
    analyzer = SlowAnalyzer(error=AnalyzerError("quota"))
    service = AnalysisService.create(cache=cache, analyzer=analyzer, coalesce_requests=True)

    results = await asyncio.gather(
        service.resolve("Glass Jar"),
        service.resolve("glass jar"),
        return_exceptions=True,
    )

    assert all(isinstance(r, AnalysisFailedError) for r in results)
    assert analyzer.call_count == 1


@pytest.mark.asyncio
async def test_failure_with_every_waiter_cancelled_is_not_left_unretrieved(cache):
    loop = asyncio.get_running_loop()
    reported: list[dict] = []
    loop.set_exception_handler(lambda _, context: reported.append(context))
    analyzer = SlowAnalyzer(error=AnalyzerError("quota"))
    service = AnalysisService.create(cache=cache, analyzer=analyzer, coalesce_requests=True)

    waiter = asyncio.ensure_future(service.resolve("Glass Jar"))
    await asyncio.sleep(0)
    shared = service._in_flight["glass jar"]
    waiter.cancel()
    await asyncio.gather(waiter, return_exceptions=True)
    await asyncio.wait([shared])

    assert waiter.cancelled()
    assert service._in_flight == {}
    del shared
    gc.collect()
    loop.set_exception_handler(None)
    assert not [c for c in reported if "never retrieved" in c.get("message", "")]


@pytest.mark.asyncio
async def test_stats_include_counters_and_backend(service):
    await service.resolve("Glass Jar")
    await service.resolve("glass jar")

    stats = await service.get_stats()

    assert stats["total_requests"] == 2
    assert stats["cache_hits"] == 1
    assert stats["hit_rate"] == 0.5
    assert stats["total_entries"] == 1
    assert stats["cache_available"] is True
    assert stats["analyzer_model"] == "stub-model"


@pytest.mark.asyncio
async def test_stats_survive_unavailable_cache(stub_analyzer):
    service = AnalysisService.create(cache=FailingCache(), analyzer=stub_analyzer)

    stats = await service.get_stats()

    assert stats["cache_available"] is False
    assert stats["total_requests"] == 0


class SlowAnalyzer:
    """Analyzer that yields to the event loop before answering."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.call_count = 0

    @property
    def model_name(self) -> str:
        return "slow-stub"

    async def analyze(self, description: str):
        self.call_count += 1
        await asyncio.sleep(0.01)
        if self.error is not None:
            raise self.error
        return make_result("B")

    async def is_available(self) -> bool:
        return True
