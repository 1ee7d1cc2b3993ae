"""Общие фикстуры: БД SQLite во временном файле, UnitOfWork, HTTP клиент.

Каждый тест получает свою БД. Файл, а не :memory:, чтобы параллельные
сессии работали через разные соединения.
"""

import os

# Настройки читаются при импорте app.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./unused.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import settings
from app.database import get_db
from app.infrastructure.db_schema import metadata, products_tbl, orders_tbl, order_items_tbl
from app.infrastructure.repositories import SQLAlchemyUserRepository
from app.infrastructure.security import BcryptPasswordHasher, JWTTokenService
from app.infrastructure.unit_of_work import UnitOfWork
from app.main import app

TEST_PASSWORD = "correct horse"


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def uow(session_factory):
    return UnitOfWork(session_factory)


@pytest.fixture
async def client(session_factory):
    """HTTP клиент с get_db, подмененным на тестовую БД"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def products(session_factory):
    """P1: 10.00 x 5, P2: 2.50 x 100, P3: нет в наличии"""
    rows = [
        {"id": 1, "name": "Keyboard", "description": "Mechanical", "price": Decimal("10.00"), "stock": 5},
        {"id": 2, "name": "Cable", "description": None, "price": Decimal("2.50"), "stock": 100},
        {"id": 3, "name": "Monitor", "description": None, "price": Decimal("199.99"), "stock": 0},
    ]
    async with session_factory() as session:
        await session.execute(insert(products_tbl), rows)
        await session.commit()
    return {"P1": 1, "P2": 2, "P3": 3}


async def create_user(session_factory, name, email, password=TEST_PASSWORD):
    hasher = BcryptPasswordHasher(rounds=4)
    password_hash = await hasher.hash(password)
    async with session_factory() as session:
        user = await SQLAlchemyUserRepository(session).create(name, email, password_hash)
        await session.commit()
    return user


@pytest.fixture
async def user(session_factory):
    return await create_user(session_factory, "Alice", "alice@example.com")


@pytest.fixture
async def other_user(session_factory):
    return await create_user(session_factory, "Bob", "bob@example.com")


@pytest.fixture
def token_service():
    return JWTTokenService(settings.JWT_SECRET_KEY, expire_minutes=60)


@pytest.fixture
def auth_headers(user, token_service):
    return {"Authorization": f"Bearer {token_service.issue(user)}"}


@pytest.fixture
def store_snapshot(session_factory):
    """Полный снимок товаров и журнала заказов для проверки атомарности"""
    async def _snapshot():
        async with session_factory() as session:
            product_rows = (await session.execute(
                select(products_tbl).order_by(products_tbl.c.id)
            )).fetchall()
            order_rows = (await session.execute(
                select(orders_tbl).order_by(orders_tbl.c.id)
            )).fetchall()
            item_rows = (await session.execute(
                select(order_items_tbl).order_by(order_items_tbl.c.id)
            )).fetchall()
        return (
            [tuple(row) for row in product_rows],
            [tuple(row) for row in order_rows],
            [tuple(row) for row in item_rows],
        )
    return _snapshot


@pytest.fixture
def stock_of(session_factory):
    async def _stock(product_id):
        async with session_factory() as session:
            result = await session.execute(
                select(products_tbl.c.stock).where(products_tbl.c.id == product_id)
            )
            return result.scalar_one()
    return _stock
