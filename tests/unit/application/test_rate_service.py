# nosec B101


import asyncio
import logging
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from application.services.rate_resolver import RateResolver
from application.services.rate_service import RateService
from domain.exceptions.rates import CacheError
from domain.models.rates import RateTable
from infrastructure.cache.memory_cache import InMemoryCachedRateStore

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
TTL = timedelta(minutes=10)


def fake_provider(name, *results):
    provider = AsyncMock()
    provider.name = name
    provider.fetch.side_effect = list(results)
    return provider


def make_service(providers, cache_store=None, preferred=None):
    return RateService(
        providers=providers,
        cache_store=cache_store or InMemoryCachedRateStore(),
        resolver=RateResolver(locale_currency=lambda: None),
        preferred_currency=lambda: preferred,
        ttl=TTL,
    )


# ============================================================================
# TEST: Refresh scheduling
# ============================================================================

@pytest.mark.asyncio
async def test_cold_start_fetches_primary(sample_table, make_fetch_result):
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com', sample_table))
    secondary = fake_provider('blockchain.info')
    service = make_service([primary, secondary])

    table = await service.get_current_table(NOW)

    assert table == sample_table
    assert service.last_updated == NOW
    secondary.fetch.assert_not_called()


@pytest.mark.asyncio
async def test_falls_back_to_secondary(make_rate, make_fetch_result):
    secondary_table = RateTable.from_rates([
        make_rate('USD', 47_900_000_000, source='blockchain.info'),
        make_rate('EUR', 35_040_000_000, source='blockchain.info'),
    ])
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com'))
    secondary = fake_provider('blockchain.info', make_fetch_result('blockchain.info', secondary_table))
    service = make_service([primary, secondary])

    table = await service.get_current_table(NOW)

    assert table == secondary_table
    assert {rate.source for rate in table} == {'blockchain.info'}
    primary.fetch.assert_called_once()
    secondary.fetch.assert_called_once()


@pytest.mark.asyncio
async def test_fresh_table_is_reused(sample_table, make_fetch_result):
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com', sample_table))
    service = make_service([primary])

    await service.get_current_table(NOW)
    table = await service.get_current_table(NOW + TTL - timedelta(seconds=1))

    assert table == sample_table
    primary.fetch.assert_called_once()


@pytest.mark.asyncio
async def test_refreshes_once_ttl_has_passed(sample_table, make_rate, make_fetch_result):
    newer = RateTable.from_rates([make_rate('USD', 48_000_000_000)])
    primary = fake_provider(
        'api.bitcoinaverage.com',
        make_fetch_result('api.bitcoinaverage.com', sample_table),
        make_fetch_result('api.bitcoinaverage.com', newer),
    )
    service = make_service([primary])

    await service.get_current_table(NOW)
    table = await service.get_current_table(NOW + TTL)

    assert table == newer
    assert service.last_updated == NOW + TTL


@pytest.mark.asyncio
async def test_all_sources_failing_keeps_previous_table(sample_table, make_fetch_result, caplog):
    primary = fake_provider(
        'api.bitcoinaverage.com',
        make_fetch_result('api.bitcoinaverage.com', sample_table),
        make_fetch_result('api.bitcoinaverage.com'),
    )
    secondary = fake_provider('blockchain.info', make_fetch_result('blockchain.info'))
    service = make_service([primary, secondary])

    await service.get_current_table(NOW)
    with caplog.at_level(logging.WARNING):
        refreshed = await service.refresh_if_stale(NOW + TTL)

    assert refreshed is False
    assert service.table == sample_table
    assert service.last_updated == NOW
    assert 'All exchange rate sources failed' in caplog.text


@pytest.mark.asyncio
async def test_cold_start_with_no_sources_available(make_fetch_result):
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com'))
    service = make_service([primary])

    assert await service.get_current_table(NOW) is None


@pytest.mark.asyncio
async def test_failed_refresh_retries_on_next_request(sample_table, make_fetch_result):
    primary = fake_provider(
        'api.bitcoinaverage.com',
        make_fetch_result('api.bitcoinaverage.com'),
        make_fetch_result('api.bitcoinaverage.com', sample_table),
    )
    service = make_service([primary])

    assert await service.get_current_table(NOW) is None
    assert await service.get_current_table(NOW + timedelta(seconds=1)) == sample_table


@pytest.mark.asyncio
async def test_provider_exception_moves_to_next(sample_table, make_fetch_result):
    primary = fake_provider('api.bitcoinaverage.com', RuntimeError('boom'))
    secondary = fake_provider('blockchain.info', make_fetch_result('blockchain.info', sample_table))
    service = make_service([primary, secondary])

    assert await service.get_current_table(NOW) == sample_table


@pytest.mark.asyncio
async def test_empty_table_counts_as_failure(sample_table, make_fetch_result):
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com', RateTable()))
    secondary = fake_provider('blockchain.info', make_fetch_result('blockchain.info', sample_table))
    service = make_service([primary, secondary])

    assert await service.get_current_table(NOW) == sample_table


@pytest.mark.asyncio
async def test_concurrent_requests_fetch_once(sample_table, make_fetch_result):
    calls = 0

    async def slow_fetch():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0)
        return make_fetch_result('api.bitcoinaverage.com', sample_table)

    primary = fake_provider('api.bitcoinaverage.com')
    primary.fetch.side_effect = slow_fetch
    service = make_service([primary])

    tables = await asyncio.gather(*(service.get_current_table(NOW) for _ in range(5)))

    assert calls == 1
    assert all(table == sample_table for table in tables)


# ============================================================================
# TEST: Cached rate store
# ============================================================================

@pytest.mark.asyncio
async def test_bootstrap_seeds_table_from_store(make_rate, make_fetch_result):
    store = InMemoryCachedRateStore(make_rate('EUR', 35_010_000_000))
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com'))
    service = make_service([primary], cache_store=store)

    table = await service.get_current_table(NOW)

    assert list(table) == [make_rate('EUR', 35_010_000_000)]
    assert service.last_updated is None


@pytest.mark.asyncio
async def test_store_read_only_once(make_rate, make_fetch_result):
    store = AsyncMock()
    store.get.return_value = make_rate()
    primary = fake_provider(
        'api.bitcoinaverage.com',
        make_fetch_result('api.bitcoinaverage.com'),
        make_fetch_result('api.bitcoinaverage.com'),
    )
    service = make_service([primary], cache_store=store)

    await service.bootstrap()
    await service.get_current_table(NOW)
    await service.get_current_table(NOW + TTL)

    store.get.assert_called_once()


@pytest.mark.asyncio
async def test_fetched_table_replaces_seeded_entry(sample_table, make_rate, make_fetch_result):
    store = InMemoryCachedRateStore(make_rate('CHF', 42_000_000_000))
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com', sample_table))
    service = make_service([primary], cache_store=store)

    table = await service.get_current_table(NOW)

    assert table == sample_table
    assert 'CHF' not in table


@pytest.mark.asyncio
async def test_stores_rate_for_preferred_currency(sample_table, make_fetch_result):
    store = InMemoryCachedRateStore()
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com', sample_table))
    service = make_service([primary], cache_store=store, preferred='EUR')

    await service.get_current_table(NOW)

    assert await store.get() == sample_table.get('EUR')


@pytest.mark.asyncio
async def test_stores_fallback_rate_without_preference(sample_table, make_fetch_result):
    store = InMemoryCachedRateStore()
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com', sample_table))
    service = make_service([primary], cache_store=store, preferred='JPY')

    await service.get_current_table(NOW)

    assert await store.get() == sample_table.get('USD')


@pytest.mark.asyncio
async def test_preferred_currency_read_on_each_refresh(sample_table, make_fetch_result):
    store = InMemoryCachedRateStore()
    preferred = Mock(side_effect=['EUR', 'GBP'])
    primary = fake_provider(
        'api.bitcoinaverage.com',
        make_fetch_result('api.bitcoinaverage.com', sample_table),
        make_fetch_result('api.bitcoinaverage.com', sample_table),
    )
    service = make_service([primary], cache_store=store)
    service.preferred_currency = preferred

    await service.get_current_table(NOW)
    await service.get_current_table(NOW + TTL)

    assert await store.get() == sample_table.get('GBP')


@pytest.mark.asyncio
async def test_store_failures_are_tolerated(sample_table, make_fetch_result, caplog):
    store = AsyncMock()
    store.get.side_effect = CacheError('Redis read failed')
    store.set.side_effect = CacheError('Redis write failed')
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com', sample_table))
    service = make_service([primary], cache_store=store)

    with caplog.at_level(logging.WARNING):
        table = await service.get_current_table(NOW)

    assert table == sample_table
    store.set.assert_called_once()
    assert 'Could not load cached exchange rate' in caplog.text
    assert 'Could not store cached exchange rate' in caplog.text


@pytest.mark.asyncio
async def test_store_written_before_lock_released(sample_table, make_fetch_result):
    lock_held = []
    store = AsyncMock()
    store.get.return_value = None
    primary = fake_provider('api.bitcoinaverage.com', make_fetch_result('api.bitcoinaverage.com', sample_table))
    service = make_service([primary], cache_store=store)
    store.set.side_effect = lambda rate: lock_held.append(service._lock.locked())

    assert await service.refresh_if_stale(NOW) is True
    assert lock_held == [True]
