from app.domain.models import OrderDetail
from app.domain.exceptions import OrderNotFoundError


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, user_id: int, order_id: int) -> OrderDetail:
        async with self._uow() as uow:
            # Чужой заказ неотличим от несуществующего
            order = await uow.orders.get_for_user(order_id, user_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            items = await uow.orders.get_line_items(order.id)
            return OrderDetail(**order.model_dump(), items=items)
