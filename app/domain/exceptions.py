from typing import Optional


class DomainException(Exception):
    pass


class ValidationError(DomainException):
    pass


class ProductNotFoundError(DomainException):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Товар {product_id} не найден")


class InsufficientStockError(DomainException):
    def __init__(self, product_id: int, required: int, available: Optional[int] = None):
        self.product_id = product_id
        self.available = available
        self.required = required
        message = f"Недостаточно товара {product_id}. Требуется: {required}"
        if available is not None:
            message += f", доступно: {available}"
        super().__init__(message)


class TransactionAbortedError(DomainException):
    pass


class OrderNotFoundError(DomainException):
    pass


class UserAlreadyExistsError(DomainException):
    pass


class UserNotFoundError(DomainException):
    pass


class InvalidPasswordError(DomainException):
    pass


class InvalidCredentialError(DomainException):
    pass
