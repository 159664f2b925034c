import locale
from collections.abc import Callable, Iterator

from domain.models.rates import ExchangeRate, RateTable, is_currency_code

GLOBAL_FALLBACK_CURRENCY = 'USD'


def locale_currency_code() -> str | None:
    """ISO code of the process monetary locale, or None when the locale has no currency"""
    code = locale.localeconv().get('int_curr_symbol', '').strip()
    return code if is_currency_code(code) else None


class RateResolver:
    """
    Picks the one rate to show for a currency code.

    Candidates are tried in order: the requested code, the configured
    default, the locale's currency, then a global fallback. The first code
    present in the table wins, so a rate comes back whenever the table holds
    any of them.
    """

    def __init__(
        self,
        fallback_currency: str = GLOBAL_FALLBACK_CURRENCY,
        locale_currency: Callable[[], str | None] = locale_currency_code,
    ):
        self.fallback_currency = fallback_currency
        self.locale_currency = locale_currency

    def resolve(
        self, table: RateTable, requested_code: str | None, configured_default_code: str | None
    ) -> ExchangeRate | None:
        for code in self._candidates(requested_code, configured_default_code):
            rate = table.get(code)
            if rate is not None:
                return rate
        return None

    def _candidates(self, requested_code: str | None, configured_default_code: str | None) -> Iterator[str]:
        # Lazy so the locale is only consulted when the first two miss
        if requested_code:
            yield requested_code
        if configured_default_code:
            yield configured_default_code
        locale_code = self.locale_currency()
        if locale_code:
            yield locale_code
        yield self.fallback_currency
