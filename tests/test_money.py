import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from pos_core.cart import add_item, set_quantity, compute_totals, line_total, checkout
from pos_core.domain import Cart, Company, Location, MoneyTotals, Product, Session, User
from pos_core.errors import EmptyCart
from pos_core.money import parse_price, format_price, flat_tax

TEN = Product(id="p1", name="Tee", unit_price=1000)
DIME = Product(id="p2", name="Sticker", unit_price=10)


@pytest.fixture
def session():
    company = Company(id="c1", name="Acme")
    location = Location(id="l1", name="Main St", address="1 Main St", city="Springfield", company_id="c1")
    return Session(user=User(id="u1", display_name="Ann"), company=company, location=location)


def test_single_item_quantity_two():
    cart = set_quantity(add_item(Cart(), TEN), "p1", 2)
    assert compute_totals(cart) == MoneyTotals(subtotal=2000, tax=175, total=2175)


def test_empty_cart_totals_are_zero():
    assert compute_totals(Cart()) == MoneyTotals(subtotal=0, tax=0, total=0)


def test_compute_totals_is_idempotent():
    cart = add_item(add_item(add_item(Cart(), TEN), DIME), TEN)
    assert compute_totals(cart) == compute_totals(cart)


def test_no_drift_over_many_small_additions():
    cart = add_item(Cart(), DIME)
    cart = set_quantity(cart, "p2", 1000)
    totals = compute_totals(cart)
    assert totals.subtotal == 10000
    assert totals.tax == 875
    assert totals.total == 10875


def test_tax_rounds_half_up_to_cent():
    # 2 цента * 0.0875 = 0.175 -> 0; 6 центов * 0.0875 = 0.525 -> 1
    policy = flat_tax("0.0875")
    assert policy(2, None) == 0
    assert policy(6, None) == 1


def test_custom_tax_policy_receives_location(session):
    seen = []

    def policy(subtotal, location):
        seen.append(location)
        return 0

    totals = compute_totals(add_item(Cart(), TEN), policy, session.location)
    assert totals.total == 1000
    assert seen == [session.location]


def test_line_total():
    cart = set_quantity(add_item(Cart(), TEN), "p1", 3)
    assert line_total(cart.lines[0]) == 3000


def test_parse_price_accepts_strings_and_numbers():
    assert parse_price("10.00") == 1000
    assert parse_price("0.1") == 10
    assert parse_price(19.99) == 1999
    assert parse_price(5) == 500
    assert parse_price("0") == 0


@pytest.mark.parametrize("raw", ["abc", "-1.00", "NaN", None, ""])
def test_parse_price_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_price(raw)


def test_format_price():
    assert format_price(2175) == "$21.75"
    assert format_price(0) == "$0.00"
    assert format_price(123456) == "$1,234.56"


def test_flat_tax_rejects_negative_rate():
    with pytest.raises(ValueError):
        flat_tax("-0.01")


def test_checkout_builds_receipt(session):
    cart = set_quantity(add_item(Cart(), TEN), "p1", 2)
    receipt = checkout(cart, session)
    assert receipt.lines == cart.lines
    assert receipt.totals.total == 2175
    assert receipt.session == session
    assert receipt.id


def test_checkout_empty_cart_raises(session):
    with pytest.raises(EmptyCart):
        checkout(Cart(), session)
