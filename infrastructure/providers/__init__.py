from .base import BaseHTTPProvider, RateSourceProvider
from .market import MarketPriceProvider
from .ticker import BitcoinAverageProvider, BlockchainInfoProvider, TickerRateProvider

__all__ = [
    'BaseHTTPProvider',
    'RateSourceProvider',
    'TickerRateProvider',
    'BitcoinAverageProvider',
    'BlockchainInfoProvider',
    'MarketPriceProvider',
]
