"""
Product repository.
One method per named query intent, all built with SQLAlchemy Core expressions.
"""
from decimal import Decimal

from sqlalchemy import select, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product


class ProductRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _scalars(self, stmt) -> list[Product]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _count(self, *criteria) -> int:
        stmt = select(func.count(Product.id))
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    # Reads

    async def find_all(self) -> list[Product]:
        return await self._scalars(select(Product))

    async def find_by_id(self, product_id: int) -> Product | None:
        return await self.session.get(Product, product_id)

    async def find_by_name(self, name: str) -> list[Product]:
        return await self._scalars(select(Product).where(Product.name == name))

    async def find_by_name_containing(self, fragment: str) -> list[Product]:
        return await self._scalars(
            select(Product).where(Product.name.contains(fragment, autoescape=True))
        )

    async def find_by_description_containing(self, fragment: str) -> list[Product]:
        return await self._scalars(
            select(Product).where(Product.description.contains(fragment, autoescape=True))
        )

    async def find_by_name_or_description_containing(self, name: str, description: str) -> list[Product]:
        return await self._scalars(
            select(Product).where(or_(
                Product.name.contains(name, autoescape=True),
                Product.description.contains(description, autoescape=True),
            ))
        )

    async def find_by_name_and_description(self, name: str, description: str) -> list[Product]:
        return await self._scalars(
            select(Product).where(and_(Product.name == name, Product.description == description))
        )

    async def find_by_price_between(self, min_price: Decimal, max_price: Decimal) -> list[Product]:
        """Inclusive on both ends."""
        return await self._scalars(
            select(Product).where(Product.price.between(min_price, max_price))
        )

    async def find_by_price_less_than(self, price: Decimal) -> list[Product]:
        return await self._scalars(select(Product).where(Product.price < price))

    async def find_by_price_greater_than(self, price: Decimal) -> list[Product]:
        return await self._scalars(select(Product).where(Product.price > price))

    async def find_by_price_range_order_by_price(self, min_price: Decimal, max_price: Decimal) -> list[Product]:
        return await self._scalars(
            select(Product)
            .where(Product.price.between(min_price, max_price))
            .order_by(Product.price.asc(), Product.id.asc())
        )

    async def find_by_name_containing_order_by_created_at(self, fragment: str) -> list[Product]:
        """Newest first."""
        return await self._scalars(
            select(Product)
            .where(Product.name.contains(fragment, autoescape=True))
            .order_by(Product.created_at.desc(), Product.id.desc())
        )

    async def find_above_average_price(self) -> list[Product]:
        # Single statement so the mean and the comparison see the same snapshot
        average = select(func.avg(Product.price)).scalar_subquery()
        return await self._scalars(select(Product).where(Product.price > average))

    async def count(self) -> int:
        return await self._count()

    async def count_by_name(self, name: str) -> int:
        return await self._count(Product.name == name)

    async def count_by_price_greater_than_equal(self, price: Decimal) -> int:
        return await self._count(Product.price >= price)

    async def exists_by_id(self, product_id: int) -> bool:
        stmt = select(select(Product.id).where(Product.id == product_id).exists())
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def exists_by_name(self, name: str) -> bool:
        stmt = select(select(Product.id).where(Product.name == name).exists())
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def exists_by_name_excluding(self, name: str, product_id: int) -> bool:
        """True when a product other than ``product_id`` holds ``name``."""
        stmt = select(
            select(Product.id).where(Product.name == name, Product.id != product_id).exists()
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    # Writes (caller commits)

    async def add(self, product: Product) -> Product:
        self.session.add(product)
        await self.session.flush()
        return product

    async def delete(self, product: Product):
        await self.session.delete(product)
        await self.session.flush()
