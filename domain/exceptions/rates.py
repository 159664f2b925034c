class RatesException(Exception):
    pass


class ProviderError(RatesException):
    pass


class ProviderStatusError(ProviderError):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class RateParseError(RatesException, ArithmeticError):
    pass


class CacheError(RatesException):
    pass


class RatesUnavailableError(RatesException):
    pass


class UnsupportedFormatError(RatesException, ValueError):
    pass
