"""История заказов и проверка владельца."""

import pytest

from app.application.checkout import CheckoutUseCase, CheckoutDTO
from app.application.get_order import GetOrderUseCase
from app.application.list_orders import ListOrdersUseCase
from app.domain.exceptions import OrderNotFoundError
from app.domain.models import CheckoutItem


async def place(uow, user_id, product_id, quantity=1):
    dto = CheckoutDTO(user_id=user_id, items=[CheckoutItem(product_id=product_id, quantity=quantity)])
    return await CheckoutUseCase(uow)(dto)


async def test_list_orders_newest_first(uow, user, products):
    first = await place(uow, user.id, products["P1"])
    second = await place(uow, user.id, products["P2"])

    orders = await ListOrdersUseCase(uow)(user.id)

    assert [o.id for o in orders] == [second.order_id, first.order_id]


async def test_list_orders_only_own(uow, user, other_user, products):
    await place(uow, other_user.id, products["P1"])

    assert await ListOrdersUseCase(uow)(user.id) == []


async def test_order_detail_includes_product_names(uow, user, products):
    placed = await place(uow, user.id, products["P2"], quantity=3)

    detail = await GetOrderUseCase(uow)(user.id, placed.order_id)

    assert detail.id == placed.order_id
    assert detail.user_id == user.id
    assert [(i.name, i.quantity) for i in detail.items] == [("Cable", 3)]


async def test_order_of_another_user_is_not_found(uow, user, other_user, products):
    placed = await place(uow, other_user.id, products["P1"])

    with pytest.raises(OrderNotFoundError):
        await GetOrderUseCase(uow)(user.id, placed.order_id)


async def test_missing_order_is_not_found(uow, user):
    with pytest.raises(OrderNotFoundError):
        await GetOrderUseCase(uow)(user.id, 12345)
