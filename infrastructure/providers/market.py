import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from domain.exceptions.rates import ProviderError

from .base import BaseHTTPProvider

logger = logging.getLogger(__name__)


class MarketPriceProvider(BaseHTTPProvider):
    """
    Last trade price of the wallet coin on an exchange market.

    Expects a payload shaped like

        {"return": {"markets": {"FST": {"lasttradeprice": "0.00012"}}}}
    """

    def __init__(self, url: str, symbol: str, client: httpx.AsyncClient | None = None, **kwargs):
        super().__init__(url, client=client, **kwargs)
        self.symbol = symbol

    async def fetch_price(self) -> Decimal | None:
        """Return the positive last trade price, or None when it cannot be obtained"""
        try:
            payload = await self._request()
            return self._parse_price(payload)
        except ProviderError as e:
            logger.warning(f'Problem fetching {self.symbol} market price from {self.url}: {e}')
            return None

    def _parse_price(self, payload: Any) -> Decimal:
        try:
            value = payload['return']['markets'][self.symbol]['lasttradeprice']
        except (KeyError, TypeError) as e:
            raise ProviderError(f'Missing last trade price for {self.symbol}') from e

        if isinstance(value, bool) or not isinstance(value, (str, int, Decimal)):
            raise ProviderError(f'Invalid last trade price: {value!r}')

        try:
            price = Decimal(value)
        except InvalidOperation as e:
            raise ProviderError(f'Invalid last trade price: {value!r}') from e

        if not price.is_finite() or price <= 0:
            raise ProviderError(f'Non-positive last trade price: {value}')

        return price
