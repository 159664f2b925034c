import zlib
from collections.abc import Callable
from datetime import UTC, datetime

from application.services.market_price import MarketPriceScaler
from application.services.rate_resolver import RateResolver
from application.services.rate_service import RateService
from domain.models.rates import ExchangeRate, RateRow


def row_id(currency_code: str) -> int:
	"""Stable row identifier for a currency code."""
	return zlib.crc32(currency_code.encode('utf-8'))


class ExchangeRatesQueryService:
	def __init__(
		self,
		rate_service: RateService,
		resolver: RateResolver,
		preferred_currency: Callable[[], str | None],
		market_price: MarketPriceScaler | None = None,
	):
		self.rate_service = rate_service
		self.resolver = resolver
		self.preferred_currency = preferred_currency
		self.market_price = market_price

	async def query(self, currency_code: str | None = None, now: datetime | None = None) -> list[RateRow] | None:
		"""
		All rates sorted by code, or the single best match for `currency_code`.

		Returns None when there is no rate data at all, and an empty list when
		nothing in the table matches the code or any of its fallbacks.
		"""
		now = now or datetime.now(UTC)

		table = await self.rate_service.get_current_table(now)
		if table is None:
			return None

		rates: list[ExchangeRate]
		if currency_code is None:
			rates = list(table)
		else:
			rate = self.resolver.resolve(table, currency_code, self.preferred_currency())
			rates = [rate] if rate is not None else []

		if self.market_price is not None:
			scaled = await self.market_price.scale(rates, now)
			if scaled is None:
				return None
			rates = scaled

		return [
			RateRow(
				id=row_id(rate.currency_code),
				currency_code=rate.currency_code,
				rate=rate.rate,
				source=rate.source,
			)
			for rate in rates
		]
