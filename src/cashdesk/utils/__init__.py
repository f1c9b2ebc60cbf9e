"""Utilities module initialization"""

from cashdesk.utils.money import (
    to_decimal,
    to_money,
    quantize,
    money_difference,
    money_sum,
    format_cop,
    format_plain,
    MINOR_UNIT,
)

__all__ = [
    "to_decimal",
    "to_money",
    "quantize",
    "money_difference",
    "money_sum",
    "format_cop",
    "format_plain",
    "MINOR_UNIT",
]
