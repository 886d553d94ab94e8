#!/usr/bin/env python3
"""
Demo script for the product impact analysis cache.

Analyzes a few product descriptions, then repeats them with different
casing and whitespace to show that the repeats are served from the cache.

Requires GEMINI_API_KEY. Pass --redis to use the durable Redis backend.
"""

import argparse
import asyncio
import time

from impact_cache.config import configure_logging
from impact_cache.exceptions import AnalysisFailedError
from impact_cache.repositories import GeminiAnalyzer, InMemoryCacheRepository, RedisCacheRepository
from impact_cache.services import AnalysisService


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def resolve_and_print(service: AnalysisService, description: str) -> None:
    """Resolve one description and print a short summary."""
    start_time = time.time()
    try:
        outcome = await service.resolve(description)
    except AnalysisFailedError as e:
        print(f"\n  Query: {description!r}")
        print(f"  ✗ Analysis failed: {e}")
        return
    elapsed_ms = (time.time() - start_time) * 1000

    print(f"\n  Query: {description!r}")
    print(f"  {'✓ CACHE HIT' if outcome.cached else '✗ Cache miss (called Gemini)'} in {elapsed_ms:.0f}ms")
    print(f"  Overall score: {outcome.result.overall_score}")
    print(f"  Summary: {outcome.result.summary[:100]}...")
    for item in outcome.result.breakdown:
        print(f"    - {item.metric}: {item.score:g}")


async def main(use_redis: bool) -> None:
    configure_logging("WARNING")

    cache = RedisCacheRepository.create() if use_redis else InMemoryCacheRepository.create()
    analyzer = GeminiAnalyzer.create()
    service = AnalysisService.create(cache=cache, analyzer=analyzer)

    try:
        print_section("First requests (expect misses)")
        for description in ["Plastic Water Bottle", "Organic Cotton T-Shirt"]:
            await resolve_and_print(service, description)

        print_section("Repeated requests (expect hits)")
        for description in ["  plastic water bottle  ", "ORGANIC COTTON T-SHIRT"]:
            await resolve_and_print(service, description)

        print_section("Cached entries")
        for entry in await service.entries():
            print(f"  #{entry.id} {entry.normalized_input!r} at {entry.created_at:%Y-%m-%d %H:%M:%S}")

        print_section("Stats")
        for key, value in (await service.get_stats()).items():
            print(f"  {key}: {value}")
    finally:
        await analyzer.close()
        if isinstance(cache, RedisCacheRepository):
            await cache.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--redis", action="store_true", help="use the Redis cache backend")
    args = parser.parse_args()
    asyncio.run(main(args.redis))
