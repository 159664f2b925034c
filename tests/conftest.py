"""
Shared test configuration and fixtures.
"""

import json
import logging

import httpx
import pytest

from domain.models.rates import ExchangeRate, FetchResult, RateTable
from infrastructure.monitoring.logger import PROVIDER_LOGGER_NAME

BITCOINAVERAGE_URL = "https://api.bitcoinaverage.com/ticker/global/all"
BLOCKCHAININFO_URL = "https://blockchain.info/ticker"


@pytest.fixture
def make_rate():
    """Build an ExchangeRate with sensible defaults"""
    def _make_rate(currency_code: str = "USD", rate: int = 47_868_000_000, source: str = "api.bitcoinaverage.com"):
        return ExchangeRate(currency_code=currency_code, rate=rate, source=source)
    return _make_rate


@pytest.fixture
def sample_table(make_rate):
    return RateTable.from_rates([
        make_rate("USD", 47_868_000_000),
        make_rate("EUR", 35_010_000_000),
        make_rate("GBP", 29_050_000_000),
    ])


@pytest.fixture
def make_response():
    """Real httpx responses, so closing and JSON decoding behave as in production"""
    def _make_response(status_code: int = 200, json_body=None, content: bytes | str = b"",
                       url: str = BITCOINAVERAGE_URL, headers: dict | None = None):
        if json_body is not None:
            content = json.dumps(json_body)
        if isinstance(content, str):
            content = content.encode("utf-8")
        return httpx.Response(
            status_code,
            content=content,
            headers=headers,
            request=httpx.Request("GET", url),
        )
    return _make_response


@pytest.fixture
def make_fetch_result():
    def _make_fetch_result(provider_name: str, table: RateTable | None = None,
                           error_message: str = "HTTP status 500"):
        if table is not None:
            return FetchResult(
                provider_name=provider_name,
                endpoint=f"https://{provider_name}/ticker",
                http_status_code=200,
                response_time_ms=120,
                was_successful=True,
                table=table,
            )
        return FetchResult(
            provider_name=provider_name,
            endpoint=f"https://{provider_name}/ticker",
            http_status_code=500,
            response_time_ms=80,
            was_successful=False,
            error_message=error_message,
        )
    return _make_fetch_result


@pytest.fixture
def isolated_logging(monkeypatch):
    """AppLogger rewires the root and provider loggers; hand it throwaway handler lists"""
    root_logger = logging.getLogger()
    provider_logger = logging.getLogger(PROVIDER_LOGGER_NAME)
    httpx_logger = logging.getLogger("httpx")
    root_handlers: list[logging.Handler] = []
    provider_handlers: list[logging.Handler] = []

    monkeypatch.setattr(root_logger, "handlers", root_handlers)
    monkeypatch.setattr(root_logger, "level", root_logger.level)
    monkeypatch.setattr(provider_logger, "handlers", provider_handlers)
    monkeypatch.setattr(provider_logger, "propagate", provider_logger.propagate)
    monkeypatch.setattr(httpx_logger, "level", httpx_logger.level)

    yield

    for handler in root_handlers + provider_handlers:
        handler.close()
