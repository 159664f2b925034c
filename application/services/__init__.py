from .market_price import MarketPriceScaler
from .rate_query_service import ExchangeRatesQueryService
from .rate_resolver import RateResolver
from .rate_service import RateService

__all__ = ['ExchangeRatesQueryService', 'MarketPriceScaler', 'RateResolver', 'RateService']
