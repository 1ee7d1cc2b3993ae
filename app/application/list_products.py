from typing import List

from app.domain.models import Product


class ListProductsUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> List[Product]:
        async with self._uow() as uow:
            return await uow.products.list_all()
