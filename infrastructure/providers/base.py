import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

from domain.exceptions.rates import ProviderError, ProviderStatusError
from domain.models.rates import FetchResult, RateTable

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = 'WalletExchangeRates/1.0'
DEFAULT_TIMEOUT = 15


class BaseHTTPProvider:
    """A base class for remote price sources, handling common HTTP logic."""

    def __init__(
        self,
        url: str,
        name: str | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._name = name or httpx.URL(url).host
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={'User-Agent': user_agent, 'Accept': 'application/json'},
            follow_redirects=False,
        )

    @property
    def name(self) -> str:
        return self._name

    async def _request(self) -> Any:
        """GET the endpoint and decode the JSON body, raising ProviderError on any failure."""
        response = None
        try:
            response = await self.client.get(self.url)

            # Redirects are not followed, so a 3xx lands here too
            if response.status_code != httpx.codes.OK:
                raise ProviderStatusError(f'HTTP status {response.status_code}', response.status_code)

            return response.json(parse_float=Decimal)

        except httpx.TimeoutException as e:
            raise ProviderError(f'Timeout after {self.timeout}s') from e
        except httpx.HTTPError as e:
            raise ProviderError(f'Request failed: {e.__class__.__name__}') from e
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise ProviderError(f'Invalid JSON payload: {e}') from e
        finally:
            if response is not None:
                await response.aclose()

    def _log_call(self, success: bool, response_time_ms: int, status_code: int | None,
                  error_message: str | None = None, rate_count: int = 0) -> None:
        extra = {
            'extra_data': {
                'provider': self.name,
                'endpoint': self.url,
                'success': success,
                'http_status_code': status_code,
                'response_time_ms': response_time_ms,
                'rate_count': rate_count,
                'error_message': error_message,
            }
        }
        if success:
            logger.info(f'Fetched {rate_count} exchange rates from {self.url}, took {response_time_ms} ms', extra=extra)
        else:
            logger.warning(f'Problem fetching exchange rates from {self.url}: {error_message}', extra=extra)

    async def close(self) -> None:
        """Cleanly close the HTTP client."""
        await self.client.aclose()

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name})>"


class RateSourceProvider(BaseHTTPProvider, ABC):
    """A source that yields a whole table of exchange rates per call."""

    async def fetch(self) -> FetchResult:
        """Fetch and parse the rate table. Never raises; failures come back as a failed FetchResult."""
        start_time = datetime.now()
        status_code = None

        try:
            payload = await self._request()
            status_code = httpx.codes.OK
            table = self._parse_rate_table(payload)

        except ProviderError as e:
            if isinstance(e, ProviderStatusError):
                status_code = e.status_code
            error_message = str(e)
        except Exception as e:
            logger.exception(f'Unexpected error fetching exchange rates from {self.url}')
            error_message = f'An unexpected error occurred: {str(e)}'

        else:
            response_time_ms = int((datetime.now() - start_time).total_seconds() * 1000)
            self._log_call(True, response_time_ms, status_code, rate_count=len(table))
            return FetchResult(
                provider_name=self.name,
                endpoint=self.url,
                http_status_code=status_code,
                response_time_ms=response_time_ms,
                was_successful=True,
                table=table,
            )

        response_time_ms = int((datetime.now() - start_time).total_seconds() * 1000)
        self._log_call(False, response_time_ms, status_code, error_message=error_message)
        return FetchResult(
            provider_name=self.name,
            endpoint=self.url,
            http_status_code=status_code,
            response_time_ms=response_time_ms,
            was_successful=False,
            error_message=error_message,
        )

    @abstractmethod
    def _parse_rate_table(self, payload: Any) -> RateTable:
        """Parse source-specific payload into a non-empty table, raising ProviderError otherwise"""
        ...
