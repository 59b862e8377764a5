import asyncio
import logging
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy import select

from app.db.database import async_session, create_tables
from app.exceptions import ConflictError
from app.models import Product
from app.services.product_service import ProductService

logger = logging.getLogger(__name__)


# Sample products
PRODUCTS_DATA = [
    ("Sample Product 1", "The first sample product.", Decimal("10000.00")),
    ("Sample Product 2", "The second sample product.", Decimal("20000.00")),
    ("Sample Product 3", "The third sample product.", Decimal("30000.00")),
]


async def seed_database() -> int:
    """Insert the sample products into an empty catalog.

    Returns:
        number of products inserted
    """
    await create_tables()

    async with async_session() as session:
        # Check if data exists
        result = await session.execute(select(Product).limit(1))
        if result.scalar():
            logger.info("Database already seeded")
            return 0

        service = ProductService(session)
        inserted = 0
        for name, description, price in PRODUCTS_DATA:
            candidate = SimpleNamespace(name=name, description=description, price=price)
            try:
                await service.create_product(candidate)
                inserted += 1
            except ConflictError:
                logger.warning(f"Skipping existing sample product: {name}")

        logger.info(f"Database seeded with {inserted} products")
        return inserted


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed_database())
