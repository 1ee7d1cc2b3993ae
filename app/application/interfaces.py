from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from app.domain.models import Order, OrderDetailItem, OrderLineItem, Product, User, TokenPayload


class ProductRepository(ABC):
    @abstractmethod
    async def get_by_id(self, product_id: int) -> Optional[Product]:
        pass

    @abstractmethod
    async def get_many(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Product]:
        pass

    @abstractmethod
    async def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """Списывает остаток, только если его хватает. False — если не хватило"""
        pass


class OrderRepository(ABC):
    @abstractmethod
    async def create(self, user_id: int, total_amount: Decimal, created_at: datetime) -> Order:
        pass

    @abstractmethod
    async def add_line_items(self, order_id: int, items: List[OrderLineItem]) -> None:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: int) -> List[Order]:
        pass

    @abstractmethod
    async def get_for_user(self, order_id: int, user_id: int) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_line_items(self, order_id: int) -> List[OrderDetailItem]:
        pass


class UserRepository(ABC):
    @abstractmethod
    async def create(self, name: str, email: str, password_hash: str) -> User:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def products(self) -> ProductRepository:
        pass

    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @property
    @abstractmethod
    def users(self) -> UserRepository:
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class PasswordHasher(ABC):
    @abstractmethod
    async def hash(self, password: str) -> str:
        pass

    @abstractmethod
    async def verify(self, password: str, password_hash: str) -> bool:
        pass


class TokenService(ABC):
    @abstractmethod
    def issue(self, user: User) -> str:
        pass

    @abstractmethod
    def verify(self, token: str) -> TokenPayload:
        pass
