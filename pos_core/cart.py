import uuid
from datetime import datetime, timezone
from functools import reduce
from typing import Optional

from .domain import Cart, LineItem, Location, MoneyTotals, Product, Receipt, Session
from .errors import EmptyCart, NotFound
from .money import TaxPolicy, default_tax


# ============ Операции с корзиной (чистые функции, возвращают новый Cart) ============


def find_line(cart: Cart, product_id: str) -> Optional[LineItem]:
    return next((line for line in cart.lines if line.product_id == product_id), None)


def add_item(cart: Cart, product: Product) -> Cart:
    """
    Добавляет одну единицу товара.
    Существующая позиция сохраняет место и снимок цены, новая встаёт в конец
    """
    if find_line(cart, product.id) is None:
        new_line = LineItem(
            product_id=product.id,
            name=product.name,
            quantity=1,
            unit_price=product.unit_price,
            sku=product.sku,
        )
        return Cart(lines=cart.lines + (new_line,))

    return Cart(
        lines=tuple(
            LineItem(
                product_id=line.product_id,
                name=line.name,
                quantity=line.quantity + 1,
                unit_price=line.unit_price,
                sku=line.sku,
            )
            if line.product_id == product.id
            else line
            for line in cart.lines
        )
    )


def remove_item(cart: Cart, product_id: str) -> Cart:
    """Убирает позицию product_id, если её нет ничего не делает"""
    return Cart(lines=tuple(filter(lambda line: line.product_id != product_id, cart.lines)))


def set_quantity(cart: Cart, product_id: str, n: int) -> Cart:
    """
    Устанавливает количество существующей позиции; n <= 0 удаляет её.
    NotFound, если позиции product_id в корзине нет
    """
    if find_line(cart, product_id) is None:
        raise NotFound(f"no line item for product '{product_id}'")

    n = int(n)
    if n <= 0:
        return remove_item(cart, product_id)

    return Cart(
        lines=tuple(
            LineItem(
                product_id=line.product_id,
                name=line.name,
                quantity=n,
                unit_price=line.unit_price,
                sku=line.sku,
            )
            if line.product_id == product_id
            else line
            for line in cart.lines
        )
    )


def clear(cart: Cart) -> Cart:
    return Cart()


# ============ Деньги ============


def line_total(line: LineItem) -> int:
    return line.unit_price * line.quantity


def item_count(cart: Cart) -> int:
    """Количество единиц в корзине, а не позиций"""
    return reduce(lambda acc, line: acc + line.quantity, cart.lines, 0)


def compute_totals(
    cart: Cart, tax_policy: TaxPolicy = default_tax, location: Optional[Location] = None
) -> MoneyTotals:
    """Подытог, налог и итог в центах, пересчитываются из позиций при каждом вызове"""
    subtotal = reduce(lambda acc, line: acc + line_total(line), cart.lines, 0)
    tax = tax_policy(subtotal, location)
    return MoneyTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)


# ============ Оформление ============


def checkout(cart: Cart, session: Session, tax_policy: TaxPolicy = default_tax) -> Receipt:
    """
    Фиксирует корзину в Receipt. Оплата здесь не проводится.
    EmptyCart для пустой корзины
    """
    if not cart.lines:
        raise EmptyCart()

    return Receipt(
        id=str(uuid.uuid4()),
        session=session,
        lines=cart.lines,
        totals=compute_totals(cart, tax_policy, session.location),
        ts=datetime.now(timezone.utc).isoformat(),
    )
