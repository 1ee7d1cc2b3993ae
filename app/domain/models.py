from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class CheckoutState(str, Enum):
    VALIDATING = "VALIDATING"
    PRICING = "PRICING"
    COMMITTING = "COMMITTING"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


_CHECKOUT_TRANSITIONS = {
    CheckoutState.VALIDATING: {CheckoutState.PRICING, CheckoutState.ROLLED_BACK},
    CheckoutState.PRICING: {CheckoutState.COMMITTING, CheckoutState.ROLLED_BACK},
    CheckoutState.COMMITTING: {CheckoutState.COMMITTED, CheckoutState.ROLLED_BACK},
    CheckoutState.COMMITTED: set(),
    CheckoutState.ROLLED_BACK: set(),
}


class CheckoutProcess:
    """Состояние одного оформления заказа.

    COMMITTED и ROLLED_BACK конечные, из них переходов нет.
    """

    def __init__(self):
        self.state = CheckoutState.VALIDATING

    @property
    def is_finished(self) -> bool:
        return not _CHECKOUT_TRANSITIONS[self.state]

    def can_advance(self, target: CheckoutState) -> bool:
        return target in _CHECKOUT_TRANSITIONS[self.state]

    def advance(self, target: CheckoutState) -> None:
        if not self.can_advance(target):
            raise RuntimeError(f"Недопустимый переход {self.state.value} -> {target.value}")
        self.state = target

    def roll_back(self) -> None:
        """Перевод в ROLLED_BACK из любого незавершенного состояния"""
        self.advance(CheckoutState.ROLLED_BACK)


class User(BaseModel):
    """Domain Entity — пользователь"""
    id: int
    name: str
    email: str
    password_hash: str
    created_at: datetime


class Product(BaseModel):
    """Domain Entity — товар каталога"""
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    created_at: datetime

    def has_stock(self, quantity: int) -> bool:
        return self.stock >= quantity


class CheckoutItem(BaseModel):
    """Value Object — позиция запроса на оформление"""
    product_id: int
    quantity: int


class OrderLineItem(BaseModel):
    """Value Object — позиция заказа с ценой на момент покупки"""
    product_id: int
    quantity: int
    price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class Order(BaseModel):
    """Domain Entity — заказ"""
    id: int
    user_id: int
    total_amount: Decimal
    created_at: datetime


class OrderDetailItem(BaseModel):
    id: int
    product_id: int
    name: str
    quantity: int
    price: Decimal


class OrderDetail(Order):
    items: List[OrderDetailItem]


class TokenPayload(BaseModel):
    user_id: int
    email: str


class CheckoutResult(BaseModel):
    order_id: int
    total_amount: Decimal
