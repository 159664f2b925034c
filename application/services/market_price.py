import asyncio
import dataclasses
import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, localcontext

from application.services.rate_service import DEFAULT_TTL
from domain.models.rates import ExchangeRate
from infrastructure.providers.market import MarketPriceProvider

logger = logging.getLogger(__name__)


class MarketPriceScaler:
    """
    Converts rates quoted per reference coin into rates per wallet coin by
    multiplying with the wallet coin's market price.

    The last good price is kept and reused until `ttl` has passed.
    """

    def __init__(self, provider: MarketPriceProvider, ttl: timedelta = DEFAULT_TTL):
        self.provider = provider
        self.ttl = ttl
        self._price: Decimal | None = None
        self._last_updated: datetime | None = None
        self._lock = asyncio.Lock()

    async def current_price(self, now: datetime | None = None) -> Decimal | None:
        now = now or datetime.now(UTC)

        async with self._lock:
            if self._last_updated is None or now - self._last_updated >= self.ttl:
                price = await self.provider.fetch_price()
                if price is not None:
                    self._price = price
                    self._last_updated = now
                elif self._price is not None:
                    logger.warning(f'Market price unavailable, reusing {self._price}')

            return self._price

    async def scale(self, rates: Iterable[ExchangeRate], now: datetime | None = None) -> list[ExchangeRate] | None:
        """Scaled copies of `rates`, or None when no market price has ever been obtained"""
        price = await self.current_price(now)
        if price is None:
            return None

        scaled = []
        with localcontext(prec=50):
            for rate in rates:
                value = int((Decimal(rate.rate) * price).to_integral_value(rounding=ROUND_HALF_UP))
                if value > 0:
                    scaled.append(dataclasses.replace(rate, rate=value))

        return scaled
