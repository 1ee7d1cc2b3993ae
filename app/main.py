import logging
import sys
from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.config import settings
from app.database import create_tables, engine
from app.presentation.api import router
from app.presentation.error_handlers import register_error_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    settings.check()

    await create_tables()
    logger.info("Таблицы созданы")

    yield

    logger.info("Приложение останавливается...")
    await engine.dispose()


app = FastAPI(
    title="Order Fulfillment Service",
    description="Каталог, оформление и история заказов",
    version="1.0.0",
    lifespan=lifespan
)

register_error_handlers(app)
app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "healthy"}
