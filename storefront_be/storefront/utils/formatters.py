import math
from decimal import Decimal
from typing import Optional, Union

Number = Union[int, float, Decimal]


def to_float(value: Optional[Number]) -> float:
    """Numeric/Decimal columns come back as Decimal; the API speaks floats."""
    if value is None:
        return 0.0
    return float(value)


def floor_money(value: Optional[Number]) -> int:
    """Monetary values are always shown without decimals."""
    if value is None:
        return 0
    return int(math.floor(value))


def initials(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{(first_name or '')[:1]}{(last_name or '')[:1]}".upper()


def short_order_id(order_id: str) -> str:
    return (order_id or "")[-7:].upper()
