"""Параллельные оформления одного товара не уводят остаток в минус."""

import asyncio

from sqlalchemy import func, select

from app.application.checkout import CheckoutUseCase, CheckoutDTO
from app.domain.exceptions import InsufficientStockError, TransactionAbortedError
from app.domain.models import CheckoutItem
from app.infrastructure.db_schema import orders_tbl
from app.infrastructure.unit_of_work import UnitOfWork


async def test_concurrent_checkouts_never_oversell(session_factory, user, products, stock_of):
    stock, quantity, attempts = 5, 2, 6
    dto = CheckoutDTO(user_id=user.id, items=[CheckoutItem(product_id=products["P1"], quantity=quantity)])

    results = await asyncio.gather(
        *(CheckoutUseCase(UnitOfWork(session_factory))(dto) for _ in range(attempts)),
        return_exceptions=True,
    )

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]

    assert len(succeeded) * quantity <= stock
    assert failed
    # SQLite может оборвать транзакцию на блокировке, но хотя бы один отказ - по остатку
    assert any(isinstance(e, InsufficientStockError) for e in failed)
    assert all(isinstance(e, (InsufficientStockError, TransactionAbortedError)) for e in failed)
    assert await stock_of(products["P1"]) == stock - len(succeeded) * quantity

    async with session_factory() as session:
        order_count = (await session.execute(select(func.count()).select_from(orders_tbl))).scalar_one()
    assert order_count == len(succeeded)
