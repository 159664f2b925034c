from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


def is_currency_code(code: str | None) -> bool:
    """Basic currency code validation"""
    return (
        isinstance(code, str) and
        len(code) == 3 and
        code.isupper() and
        code.isalpha()
    )


@dataclass(frozen=True)
class ExchangeRate:
    currency_code: str
    rate: int  # smallest units (10^-8) of the currency per coin
    source: str


@dataclass(frozen=True)
class RateTable:
    """Read-only snapshot of exchange rates keyed by currency code"""
    rates: Mapping[str, ExchangeRate] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'rates', MappingProxyType(dict(self.rates)))

    @classmethod
    def from_rates(cls, rates: Iterable[ExchangeRate]) -> 'RateTable':
        return cls({rate.currency_code: rate for rate in rates})

    def get(self, currency_code: str | None) -> ExchangeRate | None:
        if currency_code is None:
            return None
        return self.rates.get(currency_code)

    @property
    def currency_codes(self) -> list[str]:
        return sorted(self.rates)

    def __contains__(self, currency_code: object) -> bool:
        return currency_code in self.rates

    def __iter__(self) -> Iterator[ExchangeRate]:
        return (self.rates[code] for code in self.currency_codes)

    def __len__(self) -> int:
        return len(self.rates)


@dataclass
class FetchResult:
    """Tracks the outcome of a single rate source call"""
    provider_name: str
    endpoint: str
    http_status_code: int | None
    response_time_ms: int
    was_successful: bool
    error_message: str | None = None
    table: RateTable | None = None


@dataclass(frozen=True)
class RateRow:
    id: int
    currency_code: str
    rate: int
    source: str
