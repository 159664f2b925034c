import logging
from collections.abc import Sequence
from typing import Any

import httpx

from domain.exceptions.rates import ProviderError, RateParseError
from domain.models.rates import ExchangeRate, RateTable
from domain.money import to_smallest_units

from .base import RateSourceProvider

logger = logging.getLogger(__name__)


class TickerRateProvider(RateSourceProvider):
    """
    Source whose payload maps currency codes to ticker objects, e.g.

        {"USD": {"24h_avg": 478.68, "last": 479.01}, "timestamp": "..."}

    Each ticker is probed with `fields` in order; the first field holding a
    positive exact decimal becomes the rate for that currency.
    """

    RESERVED_KEYS = frozenset({'timestamp'})

    def __init__(self, url: str, fields: Sequence[str], **kwargs):
        super().__init__(url, **kwargs)
        if not fields:
            raise ValueError('at least one rate field is required')
        self.fields = tuple(fields)

    def _parse_rate_table(self, payload: Any) -> RateTable:
        if not isinstance(payload, dict):
            raise ProviderError(f'Expected a JSON object, got {type(payload).__name__}')

        rates = []
        for currency_code, ticker in payload.items():
            if currency_code in self.RESERVED_KEYS:
                continue

            if not isinstance(ticker, dict):
                raise ProviderError(f'Expected an object for {currency_code}, got {type(ticker).__name__}')

            rate = self._parse_ticker(currency_code, ticker)
            if rate is not None:
                rates.append(ExchangeRate(currency_code=currency_code, rate=rate, source=self.name))

        if not rates:
            raise ProviderError('No usable exchange rates in response')

        return RateTable.from_rates(rates)

    def _parse_ticker(self, currency_code: str, ticker: dict[str, Any]) -> int | None:
        for field in self.fields:
            value = ticker.get(field)
            if value is None:
                continue

            try:
                rate = to_smallest_units(value)
            except RateParseError as e:
                logger.warning(f'Problem fetching {currency_code} exchange rate from {self.url}: {e}')
                continue

            if rate > 0:
                return rate

        return None


class BitcoinAverageProvider(TickerRateProvider):
    """Primary source"""

    BASE_URL = 'https://api.bitcoinaverage.com/ticker/global/all'
    FIELDS = ('24h_avg', 'last')

    def __init__(self, url: str = BASE_URL, client: httpx.AsyncClient | None = None, **kwargs):
        super().__init__(url, self.FIELDS, client=client, **kwargs)


class BlockchainInfoProvider(TickerRateProvider):
    """Secondary source"""

    BASE_URL = 'https://blockchain.info/ticker'
    FIELDS = ('15m',)

    def __init__(self, url: str = BASE_URL, client: httpx.AsyncClient | None = None, **kwargs):
        super().__init__(url, self.FIELDS, client=client, **kwargs)
