"""
Money helpers

Amounts are carried as ``Decimal`` end to end. Wire floats are converted
through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather than its binary
expansion.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext, localcontext
from typing import Any, Iterable, Union

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0.00")

Amount = Union[Decimal, int, float, str]


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a wire or user value to ``Decimal`` without rounding

    ``None`` and empty strings become zero.

    Raises:
        ValueError: If the value is not a number
    """
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("Boolean is not a monetary amount")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if text == "":
            return Decimal(0)
        try:
            return Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    raise ValueError(f"Invalid amount type: {type(value).__name__}")


def _precision_for(*values: Decimal) -> int:
    """Digits needed to hold minor-unit results of these operands exactly"""
    widest = max((v.adjusted() for v in values if v.is_finite()), default=0)
    return max(getcontext().prec, widest + 6)


def quantize(value: Decimal) -> Decimal:
    """Round to the minor unit (2 places, half up) at any magnitude"""
    with localcontext() as ctx:
        ctx.prec = _precision_for(value)
        return value.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    """
    Coerce and round to the minor unit

    Infinities and NaN pass through unrounded so validation can report them.
    """
    amount = to_decimal(value)
    return quantize(amount) if amount.is_finite() else amount


def money_difference(minuend: Decimal, subtrahend: Decimal) -> Decimal:
    """Exact ``minuend - subtrahend`` of two amounts, rounded to the minor unit first"""
    a, b = quantize(minuend), quantize(subtrahend)
    with localcontext() as ctx:
        ctx.prec = _precision_for(a, b)
        return a - b


def money_sum(values: Iterable[Decimal]) -> Decimal:
    """Exact sum of minor-unit amounts"""
    amounts = [quantize(v) for v in values]
    with localcontext() as ctx:
        ctx.prec = _precision_for(*amounts) + len(amounts)
        return sum(amounts, ZERO)


def format_plain(amount: Decimal) -> str:
    """Format as ``$1234.50``, keeping the minus sign of negatives"""
    return f"${quantize(amount):.2f}"


def format_cop(amount: Amount) -> str:
    """
    Format an amount the way es-CO renders COP: ``$ 1.234.567``

    COP has no minor unit in practice, so cents are rounded away.
    """
    value = to_decimal(amount)
    with localcontext() as ctx:
        ctx.prec = _precision_for(value)
        value = value.quantize(Decimal(1), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(int(value)):,}".replace(",", ".")
    return f"{sign}$ {grouped}"
