"""
Data models for events published by the warehouse simulation.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from .enums import ProductStatus, ProductType
from .product import Product, to_epoch_ms

PRODUCT_UPDATE_EVENT = "product_update"


def iso_timestamp(moment: datetime) -> str:
    """ISO-8601 with millisecond precision, UTC rendered as 'Z'."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SensorPayload(BaseModel):
    """Sensor block of a product update; timestamp in epoch milliseconds."""

    model_config = ConfigDict(frozen=True)

    temperature: float
    humidity: float
    timestamp: int


class ProductPayload(BaseModel):
    """Public attributes of a product as sent on the wire (camelCase keys)."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    product_id: str = Field(alias="id")
    name: str
    product_type: ProductType = Field(alias="type")
    current_stock: int
    max_stock: int
    reorder_level: int
    price: float
    demand_rate: int
    sensors: SensorPayload
    status: ProductStatus
    last_restock: int | None = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductPayload":
        return cls(
            product_id=product.product_id,
            name=product.name,
            product_type=product.product_type,
            current_stock=product.current_stock,
            max_stock=product.max_stock,
            reorder_level=product.reorder_level,
            price=product.price,
            demand_rate=product.demand_rate,
            sensors=SensorPayload(
                temperature=product.sensors.temperature,
                humidity=product.sensors.humidity,
                timestamp=product.sensors.timestamp_ms,
            ),
            status=product.status,
            last_restock=(
                to_epoch_ms(product.last_restock) if product.last_restock is not None else None
            ),
        )


class ProductEvent(BaseModel):
    """Snapshot of one product after a tick. One per product per tick."""

    model_config = ConfigDict(frozen=True)

    event: Literal["product_update"] = PRODUCT_UPDATE_EVENT
    timestamp: datetime
    product: ProductPayload

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return iso_timestamp(value)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class AggregateResult(BaseModel):
    """Totals across all products for a single tick."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    demand: int = Field(ge=0)
    inventory_level: int = Field(ge=0)
    reorder_quantity: int = Field(ge=0)
    lead_time_days: int
    stockout: int = Field(ge=0)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return iso_timestamp(value)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


@dataclass(frozen=True)
class SimulationSnapshot:
    """Latest aggregate augmented with the full post-tick product set."""

    aggregate: AggregateResult
    products: tuple[Product, ...]

    def to_payload(self) -> dict[str, Any]:
        payload = self.aggregate.to_payload()
        payload["products"] = [
            ProductPayload.from_product(p).model_dump(mode="json", by_alias=True)
            for p in self.products
        ]
        return payload
