import pytest
from unittest.mock import patch, AsyncMock
from sqlalchemy import select

from app.db.seed import seed_database, PRODUCTS_DATA
from app.models import Product


class TestSeedDatabase:
    """Tests for the sample data loader."""

    @pytest.mark.asyncio
    async def test_seeds_empty_catalog_once(self, session_factory):
        """Test that sample products are inserted only into an empty catalog."""
        with patch("app.db.seed.async_session", session_factory), \
             patch("app.db.seed.create_tables", AsyncMock()):
            assert await seed_database() == len(PRODUCTS_DATA)
            assert await seed_database() == 0

        async with session_factory() as session:
            result = await session.execute(select(Product.name))
            assert sorted(result.scalars().all()) == sorted(name for name, _, _ in PRODUCTS_DATA)
