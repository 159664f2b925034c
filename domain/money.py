"""
Fixed-point coin amounts.

Amounts are plain ints counted in smallest units, 10^8 of which make one
coin. Nothing in here touches binary floating point.
"""

from decimal import Decimal, Inexact, localcontext

from domain.exceptions.rates import RateParseError, UnsupportedFormatError

SMALLEST_UNIT_EXPONENT = 8

ONE_COIN = 10 ** SMALLEST_UNIT_EXPONENT
ONE_MILLICOIN = 10 ** (SMALLEST_UNIT_EXPONENT - 3)

MAX_MONEY = 165_888_000 * ONE_COIN

# shift -> (units per display unit, {precision: rounding bucket})
_ROUNDING = {
    0: (ONE_COIN, {2: 1_000_000, 4: 10_000, 6: 100, 8: 1}),
    3: (ONE_MILLICOIN, {2: 1_000, 4: 10, 5: 1}),
}


def to_smallest_units(value: str | int | Decimal, shift: int = 0) -> int:
    """
    Convert a decimal amount into smallest units without rounding.

    Args:
        value: Decimal text or number, e.g. '478.68'
        shift: 0 for coins, 3 for milli-coins

    Returns:
        The exact integer amount

    Raises:
        RateParseError: value is not an exact decimal in range
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, Decimal)):
        raise RateParseError(f'not a decimal amount: {value!r}')

    try:
        number = Decimal(value)
        # Wide enough to hold every digit of the input, so the shift never rounds
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, len(number.as_tuple().digits) + SMALLEST_UNIT_EXPONENT)
            ctx.traps[Inexact] = True
            amount = number.scaleb(SMALLEST_UNIT_EXPONENT - shift)
            units = amount.to_integral_value()
    except (ArithmeticError, ValueError) as e:
        raise RateParseError(f'not a decimal amount: {value!r}') from e

    if not amount.is_finite():
        raise RateParseError(f'not a decimal amount: {value!r}')
    if units != amount:
        raise RateParseError(f'too many fractional digits: {value}')
    if units < 0:
        raise RateParseError(f'negative amount: {value}')
    if units > MAX_MONEY:
        raise RateParseError(f'amount too large: {value}')

    return int(units)


def format_value(value: int, precision: int, shift: int,
                 plus_sign: str = '', minus_sign: str = '-') -> str:
    """
    Render an amount of smallest units as a decimal string.

    The value is first rounded half up to `precision` fractional digits of the
    display unit selected by `shift`. The fraction is then printed with the
    fewest allowed digits that still show the rounded value exactly, so
    1.50000000 comes out as '1.50'.
    """
    if shift not in _ROUNDING:
        raise UnsupportedFormatError(f'cannot handle shift: {shift}')

    unit, buckets = _ROUNDING[shift]
    if precision not in buckets:
        raise UnsupportedFormatError(f'cannot handle precision/shift: {precision}/{shift}')

    sign = minus_sign if value < 0 else plus_sign

    abs_value = abs(value)
    bucket = buckets[precision]
    remainder = abs_value % bucket
    abs_value -= remainder
    if remainder * 2 >= bucket > 1:
        abs_value += bucket

    coins, fraction = divmod(abs_value, unit)

    for places in sorted(buckets):
        step = unit // 10 ** places
        if fraction % step == 0:
            break

    return f'{sign}{coins}.{fraction // step:0{places}d}'
