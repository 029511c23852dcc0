from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import InvalidSelection


@dataclass(frozen=True)
class User:
    id: str
    display_name: str


@dataclass(frozen=True)
class Company:
    id: str
    name: str


@dataclass(frozen=True)
class Location:
    id: str
    name: str
    address: str
    city: str
    company_id: str


@dataclass(frozen=True)
class Session:
    """Пользователь, привязанный к компании и одной из её локаций"""

    user: User
    company: Company
    location: Location

    def __post_init__(self):
        if self.location.company_id != self.company.id:
            raise InvalidSelection(
                f"location '{self.location.id}' does not belong to company '{self.company.id}'"
            )


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    unit_price: int  # центы
    sku: Optional[str] = None
    category_tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LineItem:
    product_id: str
    name: str
    quantity: int
    unit_price: int  # центы, снимок на момент добавления
    sku: Optional[str] = None


@dataclass(frozen=True)
class Cart:
    lines: Tuple[LineItem, ...] = ()


@dataclass(frozen=True)
class MoneyTotals:
    subtotal: int
    tax: int
    total: int


@dataclass(frozen=True)
class Receipt:
    id: str
    session: Session
    lines: Tuple[LineItem, ...]
    totals: MoneyTotals
    ts: str
