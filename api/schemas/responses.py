from pydantic import BaseModel, ConfigDict, Field


class ExchangeRateRow(BaseModel):
	id: int = Field(..., description='Stable row identifier derived from the currency code')
	currency_code: str = Field(..., description='Currency code')
	rate: int = Field(..., description='Price of one coin in 10^-8 units of the currency')
	source: str = Field(..., description='Host the rate was fetched from')
	display_rate: str = Field(..., description='Rate rounded for display')

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'currency_code': 'USD',
				'rate': 47868000000,
				'source': 'api.bitcoinaverage.com',
				'display_rate': '478.68',
			}
		}
	)


class ExchangeRatesResponse(BaseModel):
	rates: list[ExchangeRateRow] = Field(description='Matching exchange rates')
