from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
	pass


class CachedExchangeRateDB(Base):
	__tablename__ = 'cached_exchange_rate'

	SINGLETON_ID = 1

	id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SINGLETON_ID)
	currency_code: Mapped[str] = mapped_column(String(5), nullable=False)
	rate: Mapped[int] = mapped_column(BigInteger, nullable=False)
	source: Mapped[str] = mapped_column(String(255), nullable=False)
