from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SignupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=1)


class SignupResponse(_CamelModel):
    message: str
    user_id: int = Field(alias="userId")


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: str


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    created_at: datetime

    @classmethod
    def from_domain(cls, product):
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            stock=product.stock,
            created_at=product.created_at
        )


class CheckoutItemRequest(_CamelModel):
    # Цена от клиента не принимается: лишние поля игнорируются
    product_id: int = Field(alias="productId")
    quantity: int = Field(gt=0)


class CheckoutRequest(BaseModel):
    items: List[CheckoutItemRequest] = Field(min_length=1)


class CheckoutResponse(_CamelModel):
    message: str
    order_id: int = Field(alias="orderId")
    total_amount: Decimal = Field(alias="totalAmount")


class OrderResponse(BaseModel):
    id: int
    user_id: int
    total_amount: Decimal
    created_at: datetime

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            user_id=order.user_id,
            total_amount=order.total_amount,
            created_at=order.created_at
        )


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    name: str
    quantity: int
    price: Decimal


class OrderDetailResponse(OrderResponse):
    items: List[OrderItemResponse]

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            user_id=order.user_id,
            total_amount=order.total_amount,
            created_at=order.created_at,
            items=[OrderItemResponse(**item.model_dump()) for item in order.items]
        )


class ErrorResponse(BaseModel):
    message: str
