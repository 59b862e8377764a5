import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ValidationError, ConflictError, NotFoundError, InternalError
from app.models.product import Product
from app.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
# Numeric(10, 2) holds at most 8 integer digits
MAX_PRICE = Decimal("100000000")
CENT = Decimal("0.01")


def validate_product(candidate) -> dict:
    """Check a candidate product against the catalog rules.

    Args:
        candidate: any object with ``name``, ``description`` and ``price`` attributes

    Returns:
        dict with the normalised ``name``, ``description`` and ``price``
        (surrounding whitespace trimmed, price rounded to cents)

    Raises:
        ValidationError: naming the first offending field and the reason
    """
    name = candidate.name.strip() if candidate.name is not None else ""
    if not name:
        raise ValidationError("name", "required", "Product name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(
            "name", "too_long", f"Product name cannot exceed {NAME_MAX_LENGTH} characters"
        )

    description = candidate.description
    if description is not None:
        description = description.strip()
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                "description", "too_long",
                f"Product description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
            )

    price = candidate.price
    if price is None:
        raise ValidationError("price", "required", "Price is required")
    if not isinstance(price, Decimal):
        price = Decimal(str(price))
    if price <= 0:
        raise ValidationError("price", "not_positive", "Price must be greater than 0")
    if price >= MAX_PRICE:
        raise ValidationError("price", "too_large", f"Price must be less than {MAX_PRICE}")
    price = price.quantize(CENT, rounding=ROUND_HALF_UP)
    if price <= 0:
        raise ValidationError("price", "not_positive", "Price must be greater than 0")
    if price >= MAX_PRICE:
        raise ValidationError("price", "too_large", f"Price must be less than {MAX_PRICE}")

    return {"name": name, "description": description, "price": price}


def _non_negative(value: Decimal | None, message: str) -> Decimal:
    if value is None:
        raise ValidationError("price", "required", message)
    if value < 0:
        raise ValidationError("price", "negative", message)
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductService:
    """Business rules for the product catalog."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = ProductRepository(session)

    async def _write(self, operation, name: str):
        """Run a write and commit, mapping store failures to app errors."""
        try:
            result = await operation()
            await self.session.commit()
            return result
        except IntegrityError as e:
            # The unique index on name catches writers that raced past the existence check
            await self.session.rollback()
            logger.warning(f"Integrity error while writing product {name!r}: {e}")
            raise ConflictError(name) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error while writing product {name!r}: {e}")
            raise InternalError() from e

    # Writes

    async def create_product(self, candidate) -> Product:
        fields = validate_product(candidate)

        if await self.repository.exists_by_name(fields["name"]):
            logger.warning(f"Rejected duplicate product name: {fields['name']}")
            raise ConflictError(fields["name"])

        now = _utcnow()
        product = Product(**fields, created_at=now, updated_at=now)
        product = await self._write(lambda: self.repository.add(product), fields["name"])
        logger.info(f"Created product id={product.id} name={product.name!r}")
        return product

    async def update_product(self, product_id: int, candidate) -> Product:
        product = await self.repository.find_by_id(product_id)
        if product is None:
            raise NotFoundError(product_id)

        fields = validate_product(candidate)

        if fields["name"] != product.name and \
                await self.repository.exists_by_name_excluding(fields["name"], product_id):
            logger.warning(f"Rejected rename of product {product_id} to existing name: {fields['name']}")
            raise ConflictError(fields["name"])

        async def apply():
            product.name = fields["name"]
            product.description = fields["description"]
            product.price = fields["price"]
            product.updated_at = _utcnow()
            await self.session.flush()
            return product

        product = await self._write(apply, fields["name"])
        logger.info(f"Updated product id={product.id}")
        return product

    async def delete_product(self, product_id: int):
        product = await self.repository.find_by_id(product_id)
        if product is None:
            raise NotFoundError(product_id)

        await self._write(lambda: self.repository.delete(product), product.name)
        logger.info(f"Deleted product id={product_id}")

    # Reads

    async def get_all_products(self) -> list[Product]:
        return await self.repository.find_all()

    async def get_product_by_id(self, product_id: int) -> Product | None:
        return await self.repository.find_by_id(product_id)

    async def get_product(self, product_id: int) -> Product:
        product = await self.repository.find_by_id(product_id)
        if product is None:
            raise NotFoundError(product_id)
        return product

    async def search_products_by_name(self, name: str | None) -> list[Product]:
        if name is None or not name.strip():
            return await self.get_all_products()
        return await self.repository.find_by_name_containing(name.strip())

    async def search_products_by_description(self, description: str | None) -> list[Product]:
        if description is None or not description.strip():
            return await self.get_all_products()
        return await self.repository.find_by_description_containing(description.strip())

    async def search_products_by_price_range(self, min_price: Decimal | None,
                                             max_price: Decimal | None) -> list[Product]:
        if min_price is None or max_price is None:
            raise ValidationError("price", "required", "Both minimum and maximum price are required")
        if min_price > max_price:
            raise ValidationError(
                "price", "invalid_range", "Minimum price must not exceed maximum price"
            )
        _non_negative(min_price, "Price must be 0 or greater")
        _non_negative(max_price, "Price must be 0 or greater")
        return await self.repository.find_by_price_between(min_price, max_price)

    async def search_products(self, keyword: str | None) -> list[Product]:
        if keyword is None or not keyword.strip():
            return await self.get_all_products()
        keyword = keyword.strip()
        return await self.repository.find_by_name_or_description_containing(keyword, keyword)

    async def get_total_product_count(self) -> int:
        return await self.repository.count()

    async def get_product_count_by_price_greater_than_equal(self, price: Decimal | None) -> int:
        price = _non_negative(price, "Price must be 0 or greater")
        return await self.repository.count_by_price_greater_than_equal(price)

    async def get_products_above_average_price(self) -> list[Product]:
        return await self.repository.find_above_average_price()

    async def product_exists(self, product_id: int) -> bool:
        return await self.repository.exists_by_id(product_id)

    async def product_exists_by_name(self, name: str | None) -> bool:
        if name is None or not name.strip():
            return False
        return await self.repository.exists_by_name(name.strip())
