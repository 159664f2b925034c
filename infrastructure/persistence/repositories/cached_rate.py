from sqlalchemy.exc import SQLAlchemyError

from domain.exceptions.rates import CacheError
from domain.models.rates import ExchangeRate
from infrastructure.persistence.database import Database
from infrastructure.persistence.models.exchange_rate import CachedExchangeRateDB


class CachedRateRepository:
	"""Keeps the last known good rate in a one-row table."""

	def __init__(self, database: Database):
		self.database = database

	async def get(self) -> ExchangeRate | None:
		try:
			async with self.database.session() as session:
				row = await session.get(CachedExchangeRateDB, CachedExchangeRateDB.SINGLETON_ID)
		except SQLAlchemyError as e:
			raise CacheError(f'Failed to read cached exchange rate: {e}') from e

		if row is None:
			return None
		return ExchangeRate(currency_code=row.currency_code, rate=row.rate, source=row.source)

	async def set(self, rate: ExchangeRate) -> None:
		try:
			async with self.database.session() as session:
				await session.merge(
					CachedExchangeRateDB(
						id=CachedExchangeRateDB.SINGLETON_ID,
						currency_code=rate.currency_code,
						rate=rate.rate,
						source=rate.source,
					)
				)
		except SQLAlchemyError as e:
			raise CacheError(f'Failed to store cached exchange rate: {e}') from e
