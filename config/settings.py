from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	# Rate sources, tried in this order
	BITCOINAVERAGE_URL: str = 'https://api.bitcoinaverage.com/ticker/global/all'
	BLOCKCHAININFO_URL: str = 'https://blockchain.info/ticker'

	# Optional market price of the wallet coin; empty disables scaling
	MARKET_PRICE_URL: str = ''
	MARKET_SYMBOL: str = 'FST'

	USER_AGENT: str = 'WalletExchangeRates/1.0'
	HTTP_TIMEOUT_SECONDS: float = 15
	RATES_TTL_SECONDS: int = 600

	# Preferences
	EXCHANGE_CURRENCY_CODE: str = ''
	DEFAULT_EXCHANGE_CURRENCY: str = 'USD'

	# Cached rate store
	CACHE_BACKEND: Literal['memory', 'redis', 'database'] = 'memory'
	REDIS_URL: str = 'redis://localhost:6379'
	DATABASE_URL: str = 'sqlite+aiosqlite:///./exchange_rates.db'

	# Logging
	LOG_DIRECTORY: str = 'logs'
	LOG_CONSOLE_LEVEL: str = 'INFO'
	LOG_FILE_LEVEL: str = 'DEBUG'

	# Application
	APP_NAME: str = 'Wallet Exchange Rates API'
	DEBUG: bool = False
	HOST: str = '0.0.0.0'
	PORT: int = 8000

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')


@lru_cache
def get_settings() -> Settings:
	return Settings()
