from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import UserAlreadyExistsError
from app.domain.models import Order, OrderDetailItem, OrderLineItem, Product, User
from app.infrastructure.db_schema import users_tbl, products_tbl, orders_tbl, order_items_tbl
from app.application.interfaces import OrderRepository, ProductRepository, UserRepository


class SQLAlchemyProductRepository(ProductRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        result = await self._session.execute(
            select(products_tbl).where(products_tbl.c.id == product_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_many(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        result = await self._session.execute(
            select(products_tbl).where(products_tbl.c.id.in_(ids))
        )
        return {row.id: self._to_domain(row) for row in result.fetchall()}

    async def list_all(self) -> List[Product]:
        result = await self._session.execute(
            select(products_tbl).order_by(products_tbl.c.id.asc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def decrement_stock(self, product_id: int, quantity: int) -> bool:
        # Проверка и списание одним UPDATE: между ними нет окна для гонки
        stmt = (
            update(products_tbl)
            .where(
                products_tbl.c.id == product_id,
                products_tbl.c.stock >= quantity
            )
            .values(stock=products_tbl.c.stock - quantity)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    def _to_domain(self, row) -> Product:
        """Трансформация DB → Domain"""
        return Product(
            id=row.id,
            name=row.name,
            description=row.description,
            price=Decimal(row.price),
            stock=row.stock,
            created_at=row.created_at
        )


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, user_id: int, total_amount: Decimal, created_at: datetime) -> Order:
        stmt = insert(orders_tbl).values(
            user_id=user_id,
            total_amount=total_amount,
            created_at=created_at
        )
        result = await self._session.execute(stmt)
        return Order(
            id=result.inserted_primary_key[0],
            user_id=user_id,
            total_amount=total_amount,
            created_at=created_at
        )

    async def add_line_items(self, order_id: int, items: List[OrderLineItem]) -> None:
        await self._session.execute(
            insert(order_items_tbl),
            [
                {
                    "order_id": order_id,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "price": item.price
                }
                for item in items
            ]
        )

    async def list_by_user(self, user_id: int) -> List[Order]:
        result = await self._session.execute(
            select(orders_tbl)
            .where(orders_tbl.c.user_id == user_id)
            .order_by(orders_tbl.c.created_at.desc(), orders_tbl.c.id.desc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def get_for_user(self, order_id: int, user_id: int) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(
                orders_tbl.c.id == order_id,
                orders_tbl.c.user_id == user_id
            )
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_line_items(self, order_id: int) -> List[OrderDetailItem]:
        result = await self._session.execute(
            select(
                order_items_tbl.c.id,
                order_items_tbl.c.product_id,
                products_tbl.c.name,
                order_items_tbl.c.quantity,
                order_items_tbl.c.price
            )
            .join(products_tbl, order_items_tbl.c.product_id == products_tbl.c.id)
            .where(order_items_tbl.c.order_id == order_id)
            .order_by(order_items_tbl.c.id.asc())
        )
        return [
            OrderDetailItem(
                id=row.id,
                product_id=row.product_id,
                name=row.name,
                quantity=row.quantity,
                price=Decimal(row.price)
            )
            for row in result.fetchall()
        ]

    def _to_domain(self, row) -> Order:
        return Order(
            id=row.id,
            user_id=row.user_id,
            total_amount=Decimal(row.total_amount),
            created_at=row.created_at
        )


class SQLAlchemyUserRepository(UserRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, name: str, email: str, password_hash: str) -> User:
        stmt = insert(users_tbl).values(
            name=name,
            email=email,
            password_hash=password_hash
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as e:
            raise UserAlreadyExistsError(f"Пользователь {email} уже существует") from e
        user_id = result.inserted_primary_key[0]
        return await self._get_by_id(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self._session.execute(
            select(users_tbl).where(users_tbl.c.email == email)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def _get_by_id(self, user_id: int) -> User:
        result = await self._session.execute(
            select(users_tbl).where(users_tbl.c.id == user_id)
        )
        return self._to_domain(result.fetchone())

    def _to_domain(self, row) -> User:
        return User(
            id=row.id,
            name=row.name,
            email=row.email,
            password_hash=row.password_hash,
            created_at=row.created_at
        )
