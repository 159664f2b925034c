from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_query_service
from api.schemas import ExchangeRateRow, ExchangeRatesResponse
from application.services import ExchangeRatesQueryService
from domain.exceptions.rates import RatesUnavailableError
from domain.models.rates import RateRow
from domain.money import format_value

router = APIRouter(prefix='/api', tags=['exchange-rates'])

Precision = Annotated[int, Query(description='Fractional digits to round display_rate to (2, 4, 6 or 8)')]


def _to_response(rows: list[RateRow] | None, precision: int) -> ExchangeRatesResponse:
	if rows is None:
		raise RatesUnavailableError('No exchange rate data available')

	return ExchangeRatesResponse(
		rates=[
			ExchangeRateRow(
				id=row.id,
				currency_code=row.currency_code,
				rate=row.rate,
				source=row.source,
				display_rate=format_value(row.rate, precision, 0),
			)
			for row in rows
		]
	)


@router.get(
	'/exchange-rates',
	response_model=ExchangeRatesResponse,
	status_code=status.HTTP_200_OK,
	summary='List all known exchange rates',
)
async def list_exchange_rates(
	service: Annotated[ExchangeRatesQueryService, Depends(get_query_service)],
	precision: Precision = 2,
) -> ExchangeRatesResponse:
	rows = await service.query()
	return _to_response(rows, precision)


@router.get(
	'/exchange-rates/{currency_code}',
	response_model=ExchangeRatesResponse,
	status_code=status.HTTP_200_OK,
	summary='Get the best matching exchange rate for a currency',
)
async def get_exchange_rate(
	currency_code: Annotated[
		str,
		Path(
			min_length=3,
			max_length=5,
		),
	],
	service: Annotated[ExchangeRatesQueryService, Depends(get_query_service)],
	precision: Precision = 2,
) -> ExchangeRatesResponse:
	rows = await service.query(currency_code.upper())
	return _to_response(rows, precision)
