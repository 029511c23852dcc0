import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from pos_core.cart import (
    add_item,
    remove_item,
    set_quantity,
    clear,
    find_line,
    item_count,
)
from pos_core.domain import Cart, Product
from pos_core.errors import NotFound

TEE = Product(id="p1", name="Classic Tee", unit_price=1000, sku="TEE-M")
JEANS = Product(id="p2", name="Slim Jeans", unit_price=4999)
HAT = Product(id="p3", name="Bucket Hat", unit_price=1550)


def quantities(cart: Cart) -> dict:
    return {line.product_id: line.quantity for line in cart.lines}


def test_add_item_creates_line_with_quantity_one():
    cart = add_item(Cart(), TEE)
    assert len(cart.lines) == 1
    line = cart.lines[0]
    assert line.product_id == "p1"
    assert line.quantity == 1
    assert line.unit_price == 1000
    assert line.sku == "TEE-M"


def test_add_same_product_twice_merges_into_one_line():
    cart = add_item(add_item(Cart(), TEE), TEE)
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 2


def test_add_item_counts_match_calls_per_product():
    """Одна позиция на товар, количество равно числу добавлений"""
    sequence = [TEE, JEANS, TEE, HAT, JEANS, TEE]
    cart = Cart()
    for product in sequence:
        cart = add_item(cart, product)

    assert quantities(cart) == {"p1": 3, "p2": 2, "p3": 1}
    assert len(cart.lines) == 3


def test_insertion_order_is_display_order():
    cart = Cart()
    for product in (JEANS, TEE, JEANS, HAT):
        cart = add_item(cart, product)
    assert [line.product_id for line in cart.lines] == ["p2", "p1", "p3"]


def test_add_item_does_not_mutate_original_cart():
    original = add_item(Cart(), TEE)
    updated = add_item(original, TEE)
    assert original.lines[0].quantity == 1
    assert updated.lines[0].quantity == 2


def test_price_snapshot_survives_catalog_price_change():
    cart = add_item(Cart(), TEE)
    repriced = Product(id="p1", name="Classic Tee", unit_price=1500)
    cart = add_item(cart, repriced)
    assert cart.lines[0].unit_price == 1000
    assert cart.lines[0].quantity == 2


def test_set_quantity_zero_equals_remove():
    cart = Cart()
    for product in (TEE, TEE, TEE, JEANS):
        cart = add_item(cart, product)

    assert set_quantity(cart, "p1", 0) == remove_item(cart, "p1")
    assert find_line(set_quantity(cart, "p1", 0), "p1") is None


def test_set_quantity_negative_removes():
    cart = add_item(Cart(), TEE)
    assert set_quantity(cart, "p1", -3).lines == ()


def test_set_quantity_updates_in_place():
    cart = add_item(add_item(Cart(), TEE), JEANS)
    cart = set_quantity(cart, "p1", 7)
    assert quantities(cart) == {"p1": 7, "p2": 1}
    assert cart.lines[0].product_id == "p1"


def test_set_quantity_unknown_product_raises_not_found():
    with pytest.raises(NotFound):
        set_quantity(add_item(Cart(), TEE), "missing", 2)


def test_remove_absent_item_is_noop():
    cart = add_item(Cart(), TEE)
    assert remove_item(cart, "missing") == cart


def test_clear_empties_cart():
    cart = add_item(add_item(Cart(), TEE), JEANS)
    assert clear(cart) == Cart()


def test_item_count_sums_quantities():
    cart = Cart()
    for product in (TEE, TEE, JEANS):
        cart = add_item(cart, product)
    assert item_count(cart) == 3
    assert item_count(Cart()) == 0


def test_set_quantity_fraction_below_one_removes_line():
    """Дробное количество меньше единицы удаляет позицию, а не оставляет 0"""
    cart = add_item(add_item(Cart(), TEE), JEANS)
    updated = set_quantity(cart, "p1", 0.5)
    assert find_line(updated, "p1") is None
    assert all(line.quantity >= 1 for line in updated.lines)


def test_set_quantity_truncates_fraction():
    cart = set_quantity(add_item(Cart(), TEE), "p1", 2.7)
    assert cart.lines[0].quantity == 2
