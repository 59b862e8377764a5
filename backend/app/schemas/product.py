from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class ProductRequest(BaseModel):
    """Create/update payload.

    Fields are optional here so that missing values reach the service
    and are reported with the catalog's own validation messages.
    """
    name: str | None = None
    description: str | None = None
    price: Decimal | None = None


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    description: str | None = None
    price: Decimal
    created_at: datetime
    updated_at: datetime

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        # JSON number with two fractional digits
        return float(price.quantize(Decimal("0.01")))

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> datetime:
        # Stores without time zone support hand back naive UTC values
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
