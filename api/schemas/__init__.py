from .responses import ExchangeRateRow, ExchangeRatesResponse

__all__ = [
	'ExchangeRateRow',
	'ExchangeRatesResponse',
]
