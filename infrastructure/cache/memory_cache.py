from domain.models.rates import ExchangeRate


class InMemoryCachedRateStore:
    def __init__(self, rate: ExchangeRate | None = None):
        self._rate = rate

    async def get(self) -> ExchangeRate | None:
        return self._rate

    async def set(self, rate: ExchangeRate) -> None:
        self._rate = rate
