"""Fixed-point helpers for money and share quantities."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from stock_rewards.db.models import MONEY_PLACES, QUANTITY_PLACES

MONEY_QUANT = Decimal(1).scaleb(-MONEY_PLACES)
QUANTITY_QUANT = Decimal(1).scaleb(-QUANTITY_PLACES)
ZERO = Decimal("0")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert to Decimal without binary float artefacts (floats go through str)."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def q_money(value: Decimal | float | int | str) -> Decimal:
    """Quantize a money amount to 4 decimal places (half up)."""
    return to_decimal(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def q_quantity(value: Decimal | float | int | str) -> Decimal:
    """Quantize a share quantity to 6 decimal places (half up)."""
    return to_decimal(value).quantize(QUANTITY_QUANT, rounding=ROUND_HALF_UP)
