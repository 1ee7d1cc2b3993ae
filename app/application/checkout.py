import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List
from pydantic import BaseModel

from app.domain.models import (
    CheckoutItem, CheckoutProcess, CheckoutResult, CheckoutState, OrderLineItem, Product
)
from app.domain.exceptions import InsufficientStockError, ProductNotFoundError, ValidationError


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class CheckoutDTO(BaseModel):
    user_id: int
    items: List[CheckoutItem]


class CheckoutUseCase:
    """Оформление заказа одной транзакцией.

    Заказ, его позиции и списание остатков фиксируются вместе или не
    фиксируются вовсе. Цены берутся только из каталога.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: CheckoutDTO) -> CheckoutResult:
        self._check_request(dto)
        process = CheckoutProcess()
        logger.info(f"Оформление заказа для пользователя {dto.user_id}, позиций: {len(dto.items)}")

        async with self._uow() as uow:
            try:
                products = await uow.products.get_many(item.product_id for item in dto.items)
                self._validate(dto.items, products)
                self._advance(process, dto, CheckoutState.PRICING)

                line_items = [
                    OrderLineItem(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        price=products[item.product_id].price
                    )
                    for item in dto.items
                ]
                total_amount = sum((line.subtotal for line in line_items), Decimal("0")).quantize(CENT)
                self._advance(process, dto, CheckoutState.COMMITTING)

                order = await uow.orders.create(
                    user_id=dto.user_id,
                    total_amount=total_amount,
                    created_at=datetime.now(timezone.utc)
                )
                await uow.orders.add_line_items(order.id, line_items)
                await self._decrement_stock(uow, dto.items)
                await uow.commit()
            except Exception as e:
                process.roll_back()
                logger.warning(f"Оформление заказа для пользователя {dto.user_id} отменено: {e}")
                await uow.rollback()
                raise

        self._advance(process, dto, CheckoutState.COMMITTED)
        logger.info(f"Заказ создан: {order.id}, сумма {total_amount}")
        return CheckoutResult(order_id=order.id, total_amount=total_amount)

    def _check_request(self, dto: CheckoutDTO) -> None:
        if not dto.items:
            raise ValidationError("Список товаров пуст")
        for item in dto.items:
            if item.quantity <= 0:
                raise ValidationError(f"Количество товара {item.product_id} должно быть больше нуля")

    def _validate(self, items: List[CheckoutItem], products: Dict[int, Product]) -> None:
        """Проверка в порядке запроса, до первого нарушения"""
        claimed: Dict[int, int] = {}
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                raise ProductNotFoundError(item.product_id)
            already_claimed = claimed.get(item.product_id, 0)
            if not product.has_stock(already_claimed + item.quantity):
                raise InsufficientStockError(item.product_id, item.quantity, product.stock - already_claimed)
            claimed[item.product_id] = already_claimed + item.quantity

    async def _decrement_stock(self, uow, items: List[CheckoutItem]) -> None:
        totals: Dict[int, int] = {}
        # Фиксированный порядок блокировок между параллельными заказами
        for item in sorted(items, key=lambda i: i.product_id):
            totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity

        for product_id, quantity in totals.items():
            if not await uow.products.decrement_stock(product_id, quantity):
                raise InsufficientStockError(product_id, quantity)

    def _advance(self, process: CheckoutProcess, dto: CheckoutDTO, target: CheckoutState) -> None:
        process.advance(target)
        logger.info(f"Оформление заказа для пользователя {dto.user_id}: {target.value}")
