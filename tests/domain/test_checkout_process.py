"""CheckoutProcess — переходы состояний оформления заказа."""

import pytest

from app.domain.models import CheckoutProcess, CheckoutState, OrderLineItem, Product
from datetime import datetime, timezone
from decimal import Decimal


def test_starts_in_validating():
    process = CheckoutProcess()
    assert process.state == CheckoutState.VALIDATING
    assert not process.is_finished


def test_happy_path_reaches_committed():
    process = CheckoutProcess()
    process.advance(CheckoutState.PRICING)
    process.advance(CheckoutState.COMMITTING)
    process.advance(CheckoutState.COMMITTED)
    assert process.state == CheckoutState.COMMITTED
    assert process.is_finished


@pytest.mark.parametrize("steps", [
    [],
    [CheckoutState.PRICING],
    [CheckoutState.PRICING, CheckoutState.COMMITTING],
])
def test_roll_back_from_any_open_state(steps):
    process = CheckoutProcess()
    for step in steps:
        process.advance(step)
    process.roll_back()
    assert process.state == CheckoutState.ROLLED_BACK
    assert process.is_finished


def test_cannot_skip_pricing():
    process = CheckoutProcess()
    with pytest.raises(RuntimeError):
        process.advance(CheckoutState.COMMITTING)


def test_terminal_states_have_no_exits():
    committed = CheckoutProcess()
    committed.advance(CheckoutState.PRICING)
    committed.advance(CheckoutState.COMMITTING)
    committed.advance(CheckoutState.COMMITTED)
    with pytest.raises(RuntimeError):
        committed.roll_back()

    rolled_back = CheckoutProcess()
    rolled_back.roll_back()
    with pytest.raises(RuntimeError):
        rolled_back.advance(CheckoutState.PRICING)


def test_line_item_subtotal():
    line = OrderLineItem(product_id=1, quantity=3, price=Decimal("2.50"))
    assert line.subtotal == Decimal("7.50")


def test_product_has_stock_up_to_current_level():
    product = Product(
        id=1, name="Keyboard", price=Decimal("10.00"), stock=5,
        created_at=datetime.now(timezone.utc)
    )
    assert product.has_stock(5)
    assert not product.has_stock(6)
