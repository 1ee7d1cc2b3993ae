from typing import List

from app.domain.models import Order


class ListOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, user_id: int) -> List[Order]:
        """Заказы пользователя, новые первыми"""
        async with self._uow() as uow:
            return await uow.orders.list_by_user(user_id)
