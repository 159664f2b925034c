from typing import Protocol

from domain.models.rates import ExchangeRate


class CachedRateStore(Protocol):
    """Single slot holding the last known good rate across restarts"""

    async def get(self) -> ExchangeRate | None:
        ...

    async def set(self, rate: ExchangeRate) -> None:
        ...
