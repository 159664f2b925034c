import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

from application.services.rate_resolver import RateResolver
from domain.exceptions.rates import CacheError
from domain.models.rates import RateTable
from infrastructure.cache.base import CachedRateStore
from infrastructure.providers.base import RateSourceProvider

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=10)


class RateService:
    """
    Owns the live rate table.

    The table is refreshed from the first source in `providers` that answers
    with usable rates, at most once per `ttl`. A refresh that fails on every
    source keeps whatever table was live before, so once any rates have been
    seen the service never goes back to having none.
    """

    def __init__(
        self,
        providers: Sequence[RateSourceProvider],
        cache_store: CachedRateStore,
        resolver: RateResolver,
        preferred_currency: Callable[[], str | None],
        ttl: timedelta = DEFAULT_TTL,
    ):
        self.providers = list(providers)
        self.cache_store = cache_store
        self.resolver = resolver
        self.preferred_currency = preferred_currency
        self.ttl = ttl

        self._table: RateTable | None = None
        self._last_updated: datetime | None = None
        self._bootstrapped = False
        self._lock = asyncio.Lock()

    @property
    def table(self) -> RateTable | None:
        return self._table

    @property
    def last_updated(self) -> datetime | None:
        return self._last_updated

    async def bootstrap(self) -> None:
        """Seed a one-entry table from the cached rate store. Only the first call reads the store."""
        if self._bootstrapped:
            return
        self._bootstrapped = True

        try:
            cached_rate = await self.cache_store.get()
        except CacheError as e:
            logger.warning(f'Could not load cached exchange rate: {e}')
            return

        if cached_rate is not None and self._table is None:
            self._table = RateTable.from_rates([cached_rate])
            logger.info(f'Seeded exchange rates from cached {cached_rate.currency_code} rate')

    def is_stale(self, now: datetime) -> bool:
        return self._last_updated is None or now - self._last_updated >= self.ttl

    async def refresh_if_stale(self, now: datetime | None = None) -> bool:
        """Refresh the table when stale. Returns True when a new table was installed."""
        now = now or datetime.now(UTC)

        async with self._lock:
            await self.bootstrap()

            if not self.is_stale(now):
                return False

            table = await self._fetch_first_available()
            if table is None:
                logger.warning('All exchange rate sources failed, keeping previous rates')
                return False

            self._table = table
            self._last_updated = now

            await self._store_cached_rate(table)
            return True

    async def get_current_table(self, now: datetime | None = None) -> RateTable | None:
        await self.refresh_if_stale(now)
        return self._table

    async def _fetch_first_available(self) -> RateTable | None:
        for provider in self.providers:
            try:
                result = await provider.fetch()
            except Exception as e:
                logger.exception(f'Provider {provider.name} failed: {e}')
                continue

            if result.was_successful and result.table:
                return result.table

        return None

    async def _store_cached_rate(self, table: RateTable) -> None:
        preferred = self.preferred_currency()
        rate = self.resolver.resolve(table, preferred, preferred)
        if rate is None:
            return

        try:
            await self.cache_store.set(rate)
        except CacheError as e:
            logger.warning(f'Could not store cached exchange rate: {e}')
