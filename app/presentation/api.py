from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.presentation.schemas import (
    SignupRequest, SignupResponse, LoginRequest, LoginResponse, UserResponse,
    ProductResponse, CheckoutRequest, CheckoutResponse,
    OrderResponse, OrderDetailResponse, ErrorResponse
)
from app.application.checkout import CheckoutUseCase, CheckoutDTO
from app.application.get_order import GetOrderUseCase
from app.application.get_product import GetProductUseCase
from app.application.list_orders import ListOrdersUseCase
from app.application.list_products import ListProductsUseCase
from app.application.login_user import LoginUserUseCase, LoginDTO
from app.application.register_user import RegisterUserUseCase, RegisterUserDTO
from app.domain.models import CheckoutItem, TokenPayload
from app.domain.exceptions import (
    ValidationError, ProductNotFoundError, InsufficientStockError, TransactionAbortedError,
    OrderNotFoundError, UserAlreadyExistsError, UserNotFoundError, InvalidPasswordError,
    InvalidCredentialError
)
from app.infrastructure.unit_of_work import UnitOfWork
from app.infrastructure.security import BcryptPasswordHasher, JWTTokenService
from app.config import settings


router = APIRouter()
bearer_scheme = HTTPBearer(auto_error=False)


# Фабрики для создания use cases
def get_password_hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=settings.BCRYPT_ROUNDS)


def get_token_service() -> JWTTokenService:
    return JWTTokenService(
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )


def get_register_user_use_case(
    db: AsyncSession = Depends(get_db),
    hasher: BcryptPasswordHasher = Depends(get_password_hasher)
):
    return RegisterUserUseCase(UnitOfWork(lambda: db), hasher)


def get_login_user_use_case(
    db: AsyncSession = Depends(get_db),
    hasher: BcryptPasswordHasher = Depends(get_password_hasher),
    tokens: JWTTokenService = Depends(get_token_service)
):
    return LoginUserUseCase(UnitOfWork(lambda: db), hasher, tokens)


def get_list_products_use_case(db: AsyncSession = Depends(get_db)):
    return ListProductsUseCase(UnitOfWork(lambda: db))


def get_get_product_use_case(db: AsyncSession = Depends(get_db)):
    return GetProductUseCase(UnitOfWork(lambda: db))


def get_checkout_use_case(db: AsyncSession = Depends(get_db)):
    return CheckoutUseCase(UnitOfWork(lambda: db))


def get_list_orders_use_case(db: AsyncSession = Depends(get_db)):
    return ListOrdersUseCase(UnitOfWork(lambda: db))


def get_get_order_use_case(db: AsyncSession = Depends(get_db)):
    return GetOrderUseCase(UnitOfWork(lambda: db))


def parse_id(raw_id: str, not_found_detail: str) -> int:
    """Идентификатор из пути; нечисловой id не может существовать"""
    if not (raw_id.isascii() and raw_id.isdigit()):
        raise HTTPException(status_code=404, detail=not_found_detail)
    return int(raw_id)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: JWTTokenService = Depends(get_token_service)
) -> TokenPayload:
    """Проверка Bearer токена для защищенных маршрутов"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access Token Required")
    try:
        return tokens.verify(credentials.credentials)
    except InvalidCredentialError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid Token")


@router.post(
    "/signup",
    response_model=SignupResponse,
    responses={400: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def signup(
    request: SignupRequest,
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case)
):
    """Регистрация пользователя"""
    try:
        user = await use_case(RegisterUserDTO(
            name=request.name,
            email=request.email,
            password=request.password
        ))
        return SignupResponse(message="User created", user_id=user.id)
    except UserAlreadyExistsError:
        raise HTTPException(status_code=400, detail="User already exists")
    except ValidationError:
        raise HTTPException(status_code=400, detail="Password is too long")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}}
)
async def login(
    request: LoginRequest,
    use_case: LoginUserUseCase = Depends(get_login_user_use_case)
):
    """Вход по email и паролю"""
    try:
        token, user = await use_case(LoginDTO(email=request.email, password=request.password))
    except UserNotFoundError:
        raise HTTPException(status_code=400, detail="User not found")
    except (InvalidPasswordError, ValidationError):
        raise HTTPException(status_code=400, detail="Invalid password")
    return LoginResponse(
        token=token,
        user=UserResponse(id=user.id, name=user.name, email=user.email)
    )


@router.get("/products", response_model=List[ProductResponse])
async def list_products(use_case: ListProductsUseCase = Depends(get_list_products_use_case)):
    """Каталог товаров"""
    products = await use_case()
    return [ProductResponse.from_domain(product) for product in products]


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_product(
    product_id: str,
    use_case: GetProductUseCase = Depends(get_get_product_use_case)
):
    """Карточка товара"""
    try:
        product = await use_case(parse_id(product_id, "Product not found"))
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductResponse.from_domain(product)


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    },
    status_code=status.HTTP_201_CREATED
)
async def checkout(
    request: CheckoutRequest,
    current_user: TokenPayload = Depends(get_current_user),
    use_case: CheckoutUseCase = Depends(get_checkout_use_case)
):
    """Оформить заказ"""
    dto = CheckoutDTO(
        user_id=current_user.user_id,
        items=[CheckoutItem(product_id=item.product_id, quantity=item.quantity) for item in request.items]
    )
    try:
        result = await use_case(dto)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid request data")
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Product {e.product_id} not found")
    except InsufficientStockError as e:
        raise HTTPException(status_code=409, detail=f"Insufficient stock for product {e.product_id}")
    except TransactionAbortedError:
        raise HTTPException(status_code=500, detail="Transaction aborted, please retry")
    return CheckoutResponse(
        message="Order placed successfully",
        order_id=result.order_id,
        total_amount=result.total_amount
    )


@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(
    current_user: TokenPayload = Depends(get_current_user),
    use_case: ListOrdersUseCase = Depends(get_list_orders_use_case)
):
    """Заказы текущего пользователя"""
    orders = await use_case(current_user.user_id)
    return [OrderResponse.from_domain(order) for order in orders]


@router.get(
    "/orders/{order_id}",
    response_model=OrderDetailResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_order(
    order_id: str,
    current_user: TokenPayload = Depends(get_current_user),
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Заказ с позициями"""
    try:
        order = await use_case(current_user.user_id, parse_id(order_id, "Order not found"))
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    return OrderDetailResponse.from_domain(order)
