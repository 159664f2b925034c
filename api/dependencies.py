import logging
from datetime import timedelta

from redis.asyncio import Redis

from application.services import (
	ExchangeRatesQueryService,
	MarketPriceScaler,
	RateResolver,
	RateService,
)
from config.settings import Settings, get_settings
from infrastructure.cache.base import CachedRateStore
from infrastructure.cache.memory_cache import InMemoryCachedRateStore
from infrastructure.cache.redis_cache import RedisCachedRateStore
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.cached_rate import CachedRateRepository
from infrastructure.providers import (
	BaseHTTPProvider,
	BitcoinAverageProvider,
	BlockchainInfoProvider,
	MarketPriceProvider,
	RateSourceProvider,
)

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	db: Database | None = None
	redis_client: Redis | None = None
	cache_store: CachedRateStore | None = None
	providers: list[RateSourceProvider] | None = None
	market_provider: MarketPriceProvider | None = None
	rate_service: RateService | None = None
	query_service: ExchangeRatesQueryService | None = None


deps = AppDependencies()


def preferred_currency() -> str | None:
	"""The user's preferred currency, read fresh on every resolution."""
	return get_settings().EXCHANGE_CURRENCY_CODE.strip().upper() or None


def build_cache_store(settings: Settings) -> CachedRateStore:
	if settings.CACHE_BACKEND == 'redis':
		deps.redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
		return RedisCachedRateStore(deps.redis_client)
	if settings.CACHE_BACKEND == 'database':
		deps.db = Database(settings.DATABASE_URL)
		return CachedRateRepository(deps.db)
	return InMemoryCachedRateStore()


def init_dependencies() -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = get_settings()

	http_options = {
		'user_agent': settings.USER_AGENT,
		'timeout': settings.HTTP_TIMEOUT_SECONDS,
	}

	# Priority order
	deps.providers = [
		BitcoinAverageProvider(settings.BITCOINAVERAGE_URL, **http_options),
		BlockchainInfoProvider(settings.BLOCKCHAININFO_URL, **http_options),
	]
	deps.cache_store = build_cache_store(settings)

	resolver = RateResolver(fallback_currency=settings.DEFAULT_EXCHANGE_CURRENCY)
	deps.rate_service = RateService(
		providers=deps.providers,
		cache_store=deps.cache_store,
		resolver=resolver,
		preferred_currency=preferred_currency,
		ttl=timedelta(seconds=settings.RATES_TTL_SECONDS),
	)

	market_price = None
	if settings.MARKET_PRICE_URL:
		deps.market_provider = MarketPriceProvider(
			settings.MARKET_PRICE_URL, settings.MARKET_SYMBOL, **http_options
		)
		market_price = MarketPriceScaler(
			deps.market_provider, ttl=timedelta(seconds=settings.RATES_TTL_SECONDS)
		)

	deps.query_service = ExchangeRatesQueryService(
		rate_service=deps.rate_service,
		resolver=resolver,
		preferred_currency=preferred_currency,
		market_price=market_price,
	)
	logger.info(f'Dependencies initialized ({settings.CACHE_BACKEND} cached rate store)')


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	clients: list[BaseHTTPProvider] = list(deps.providers or [])
	if deps.market_provider:
		clients.append(deps.market_provider)
	for provider in clients:
		await provider.close()

	if deps.redis_client:
		await deps.redis_client.aclose()
	if deps.db:
		await deps.db.close()

	logger.info('Cleanup complete')


async def bootstrap() -> None:
	"""Load the cached rate. Called after init_dependencies() at startup."""
	logger.info('Bootstrapping exchange rates...')

	if deps.rate_service is None:
		raise RuntimeError('Dependencies not initialized. Call init_dependencies() first.')

	if deps.db is not None:
		await deps.db.create_tables()
		logger.info('Database tables created')

	await deps.rate_service.bootstrap()

	logger.info('Bootstrap complete')


def get_query_service() -> ExchangeRatesQueryService:
	if deps.query_service is None:
		raise RuntimeError('Query service not initialized')
	return deps.query_service
