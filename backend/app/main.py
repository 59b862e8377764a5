import logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.config import Config
from app.db.database import create_tables, dispose_engine
from app.routers import products, health
from app.exceptions import (
    AppException,
    app_exception_handler,
    request_validation_exception_handler,
    generic_exception_handler,
)

# Configure logging
logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if Config.CREATE_TABLES:
        await create_tables()
        logger.info("Database tables ready")
    yield
    await dispose_engine()


app = FastAPI(
    title="Simple Shop API",
    version=Config.VERSION,
    description="Product catalog CRUD and search",
    lifespan=lifespan
)

# Register exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(products.router)
