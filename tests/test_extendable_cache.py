import asyncio
from datetime import timedelta

import pytest
from structlog.testing import capture_logs

from conftest import ExampleAsyncCache, ExampleSyncCache
from with_simple_caching.errors import CacheConfigurationError
from with_simple_caching.hooks import CacheSetEvent, CacheTrigger
from with_simple_caching.memory_backend import InMemoryCache
from with_simple_caching.types import MISSING
from with_simple_caching.wrappers.extendable_cache import (
    with_extendable_cache,
    with_extendable_cache_async,
)


def get_recipes(input: dict, context: dict | None = None) -> list[str]:
    return [f"{input['ingredient']} soup"]


def test_invalidate_for_input(sync_cache: ExampleSyncCache) -> None:
    recipes = with_extendable_cache(get_recipes, cache=sync_cache)

    recipes.execute({"ingredient": "leek"})
    assert sync_cache.store == {'{"ingredient":"leek"}': ["leek soup"]}

    recipes.invalidate(for_input=[{"ingredient": "leek"}])
    assert sync_cache.store == {}
    assert sync_cache.sets[-1].value is MISSING


def test_invalidate_for_key(sync_cache: ExampleSyncCache) -> None:
    recipes = with_extendable_cache(get_recipes, cache=sync_cache)
    recipes.execute({"ingredient": "leek"})

    recipes.invalidate(for_key='{"ingredient":"leek"}')
    assert sync_cache.store == {}


def test_invalidate_requires_exactly_one_target(sync_cache: ExampleSyncCache) -> None:
    recipes = with_extendable_cache(get_recipes, cache=sync_cache)

    with pytest.raises(ValueError):
        recipes.invalidate()
    with pytest.raises(ValueError):
        recipes.invalidate(for_input=[{"ingredient": "leek"}], for_key="k")


@pytest.mark.parametrize("for_input", [{"ingredient": "leek"}, "leek", b"leek", 42])
def test_for_input_must_be_a_sequence_of_arguments(
    sync_cache: ExampleSyncCache, for_input: object
) -> None:
    recipes = with_extendable_cache(get_recipes, cache=sync_cache)
    recipes.execute({"ingredient": "leek"})

    with pytest.raises(ValueError, match="for_input must be a sequence"):
        recipes.invalidate(for_input=for_input)
    with pytest.raises(ValueError, match="for_input must be a sequence"):
        recipes.update(for_input=for_input, to_value=["leek pie"])
    assert sync_cache.store == {'{"ingredient":"leek"}': ["leek soup"]}


@pytest.mark.asyncio
async def test_async_for_input_must_be_a_sequence_of_arguments(
    async_cache: ExampleAsyncCache,
) -> None:
    async def get_price(input: dict) -> int:
        return 10

    prices = with_extendable_cache_async(get_price, cache=async_cache)

    with pytest.raises(ValueError, match="for_input must be a sequence"):
        await prices.invalidate(for_input={"ingredient": "leek"})


def test_update_with_a_value_is_seen_by_execute(sync_cache: ExampleSyncCache) -> None:
    calls = 0

    def count(input: str) -> int:
        nonlocal calls
        calls += 1
        return 1

    counter = with_extendable_cache(count, cache=sync_cache, expiration=timedelta(hours=1))

    counter.update(for_input=["a"], to_value=7)

    assert counter.execute("a") == 7
    assert calls == 0
    assert sync_cache.sets[-1].expiration == timedelta(hours=1)


def test_update_derived_from_the_cached_output(sync_cache: ExampleSyncCache) -> None:
    counter = with_extendable_cache(
        lambda input: 21,
        cache=sync_cache,
        serialize_value=str,
        deserialize_value=int,
    )
    counter.execute("a")

    counter.update(for_key='"a"', to_value=lambda from_cached_output: from_cached_output * 2)

    assert sync_cache.store['"a"'] == "42"
    assert counter.execute("a") == 42


def test_update_sees_missing_when_nothing_is_cached(sync_cache: ExampleSyncCache) -> None:
    seen = []
    counter = with_extendable_cache(lambda input: 1, cache=sync_cache)

    def bump(from_cached_output):
        seen.append(from_cached_output)
        return 1 if from_cached_output is MISSING else from_cached_output + 1

    counter.update(for_input=["a"], to_value=bump)
    counter.update(for_input=["a"], to_value=bump)

    assert seen == [MISSING, 1]
    assert sync_cache.store['"a"'] == 2


def test_update_to_missing_invalidates(sync_cache: ExampleSyncCache) -> None:
    counter = with_extendable_cache(lambda input: 1, cache=sync_cache)
    counter.execute("a")

    counter.update(for_input=["a"], to_value=lambda from_cached_output: MISSING)

    assert sync_cache.store == {}


def test_for_input_resolves_the_cache_from_context() -> None:
    tenant_cache = InMemoryCache()
    recipes = with_extendable_cache(get_recipes, cache=lambda for_input: for_input[1]["cache"])

    recipes.execute({"ingredient": "leek"}, {"cache": tenant_cache})
    recipes.invalidate(for_input=[{"ingredient": "leek"}, {"cache": tenant_cache}])

    assert tenant_cache.get('{"ingredient":"leek"}') is MISSING


def test_for_key_with_a_resolved_cache_needs_the_cache_passed_in() -> None:
    tenant_cache = InMemoryCache()
    recipes = with_extendable_cache(get_recipes, cache=lambda for_input: for_input[1]["cache"])
    recipes.execute({"ingredient": "leek"}, {"cache": tenant_cache})

    with pytest.raises(CacheConfigurationError, match="could not find the cache to invalidate"):
        recipes.invalidate(for_key='{"ingredient":"leek"}')

    recipes.update(for_key='{"ingredient":"leek"}', to_value=["leek pie"], cache=tenant_cache)
    assert tenant_cache.get('{"ingredient":"leek"}') == ["leek pie"]


def test_on_set_hooks_see_every_trigger(sync_cache: ExampleSyncCache) -> None:
    events: list[CacheSetEvent] = []
    recipes = with_extendable_cache(get_recipes, cache=sync_cache, on_set=[events.append])

    recipes.execute({"ingredient": "leek"})
    recipes.update(for_input=[{"ingredient": "leek"}], to_value=["leek pie"])
    recipes.invalidate(for_key='{"ingredient":"leek"}')

    assert [event.trigger for event in events] == [
        CacheTrigger.EXECUTE,
        CacheTrigger.UPDATE,
        CacheTrigger.INVALIDATE,
    ]
    assert events[0].for_input == ({"ingredient": "leek"},)
    assert events[0].value.output == ["leek soup"]
    assert events[1].value.cached == ["leek pie"]
    assert events[2].for_input is None
    assert events[2].value is None
    assert {event.for_key for event in events} == {'{"ingredient":"leek"}'}


def test_failing_on_set_hook_is_logged_not_raised(sync_cache: ExampleSyncCache) -> None:
    def broken_hook(event: CacheSetEvent) -> None:
        raise RuntimeError("hook down")

    recipes = with_extendable_cache(get_recipes, cache=sync_cache, on_set=[broken_hook])

    with capture_logs() as logs:
        assert recipes.execute({"ingredient": "leek"}) == ["leek soup"]

    failures = [log for log in logs if log["event"] == "cache_on_set_hook_failed"]
    assert len(failures) == 1
    assert failures[0]["error"] == "hook down"
    assert failures[0]["trigger"] == "EXECUTE"


@pytest.mark.asyncio
async def test_async_invalidate_and_update(async_cache: ExampleAsyncCache) -> None:
    calls = 0

    async def get_price(input: str) -> int:
        nonlocal calls
        calls += 1
        return 10

    prices = with_extendable_cache_async(get_price, cache=async_cache)

    assert await prices.execute("leek") == 10
    await prices.update(
        for_input=["leek"], to_value=lambda from_cached_output: from_cached_output + 5
    )
    assert await prices.execute("leek") == 15

    await prices.invalidate(for_key='"leek"')
    assert await prices.execute("leek") == 10
    assert calls == 2


@pytest.mark.asyncio
async def test_async_update_accepts_a_coroutine_function(async_cache: ExampleAsyncCache) -> None:
    async def get_price(input: str) -> int:
        return 10

    prices = with_extendable_cache_async(get_price, cache=async_cache)

    async def fetch_latest(from_cached_output):
        return 12

    await prices.update(for_input=["leek"], to_value=fetch_latest)

    assert async_cache.store == {'"leek"': 12}


@pytest.mark.asyncio
async def test_async_on_set_hooks_are_scheduled(async_cache: ExampleAsyncCache) -> None:
    seen = asyncio.Event()
    triggers: list[CacheTrigger] = []

    async def hook(event: CacheSetEvent) -> None:
        triggers.append(event.trigger)
        seen.set()

    async def get_price(input: str) -> int:
        return 10

    prices = with_extendable_cache_async(get_price, cache=async_cache, on_set=[hook])
    await prices.execute("leek")

    await asyncio.wait_for(seen.wait(), timeout=1)
    assert triggers == [CacheTrigger.EXECUTE]


def test_async_hook_outside_of_an_event_loop_is_skipped(sync_cache: ExampleSyncCache) -> None:
    async def hook(event: CacheSetEvent) -> None:
        raise AssertionError("should not run")

    recipes = with_extendable_cache(get_recipes, cache=sync_cache, on_set=[hook])

    with capture_logs() as logs:
        recipes.execute({"ingredient": "leek"})

    assert "cache_on_set_hook_skipped" in [log["event"] for log in logs]
