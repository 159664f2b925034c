import json

from redis import asyncio as redis
from redis.exceptions import RedisError

from domain.exceptions.rates import CacheError
from domain.models.rates import ExchangeRate


class RedisCachedRateStore:
    CACHED_RATE_KEY = "exchange_rate:cached"

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    async def get(self) -> ExchangeRate | None:
        try:
            data = await self.redis.get(self.CACHED_RATE_KEY)
        except RedisError as e:
            raise CacheError(f"Redis read failed: {e}") from e

        if not data:
            return None

        try:
            rate_dict = json.loads(data)
            return ExchangeRate(
                currency_code=rate_dict["currency_code"],
                rate=int(rate_dict["rate"]),
                source=rate_dict["source"],
            )
        except (ValueError, KeyError, TypeError) as e:
            raise CacheError(f"Invalid json data for {self.CACHED_RATE_KEY}: {e}") from e

    async def set(self, rate: ExchangeRate) -> None:
        rate_dict = {
            "currency_code": rate.currency_code,
            "rate": str(rate.rate),
            "source": rate.source,
        }

        # No expiry: the record has to survive restarts until replaced
        try:
            await self.redis.set(self.CACHED_RATE_KEY, json.dumps(rate_dict))
        except RedisError as e:
            raise CacheError(f"Redis write failed: {e}") from e
