from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Optional, Union

from .domain import Location

TAX_RATE = Decimal("0.0875")

# (subtotal_cents, location) -> tax_cents
TaxPolicy = Callable[[int, Optional[Location]], int]

_CENT = Decimal("0.01")


def parse_price(raw: Union[str, int, float, Decimal]) -> int:
    """Десятичная строка или число -> центы. ValueError для мусора и отрицательных"""
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"invalid price {raw!r}") from e

    if not amount.is_finite() or amount < 0:
        raise ValueError(f"invalid price {raw!r}")

    return int(amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100)


def format_price(cents: int) -> str:
    """Форматирует центы в доллары"""
    return f"${Decimal(cents) / 100:,.2f}"


def flat_tax(rate: Union[str, Decimal]) -> TaxPolicy:
    """Единая ставка налога, округление half-up до цента"""
    rate = Decimal(str(rate))
    if rate < 0:
        raise ValueError(f"tax rate must not be negative, got {rate}")

    def policy(subtotal: int, location: Optional[Location] = None) -> int:
        return int((Decimal(subtotal) * rate).quantize(Decimal(1), rounding=ROUND_HALF_UP))

    return policy


default_tax = flat_tax(TAX_RATE)
