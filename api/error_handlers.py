import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.rates import RatesUnavailableError, UnsupportedFormatError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(UnsupportedFormatError)
	async def unsupported_format_handler(request: Request, exc: UnsupportedFormatError):
		return JSONResponse(status_code=422, content={'detail': str(exc)})

	@app.exception_handler(RatesUnavailableError)
	async def rates_unavailable_handler(request: Request, exc: RatesUnavailableError):
		logger.error(f'Rates unavailable: {exc}')
		return JSONResponse(
			status_code=503, content={'detail': 'Exchange rate data unavailable'}
		)
