"""
Product data model for the simulated warehouse.
Includes SensorReading and Product dataclasses.
"""

from dataclasses import dataclass
from datetime import datetime

from .enums import ProductStatus, ProductType

# Deviation from the ideal temperature (degrees) above which a product is flagged
TEMPERATURE_WARNING_THRESHOLD = 2.0


class InventoryInvariantError(AssertionError):
    """Raised when a product is built with stock outside its capacity bounds."""


def to_epoch_ms(moment: datetime) -> int:
    return int(round(moment.timestamp() * 1000))


@dataclass(frozen=True)
class SensorReading:
    """Environmental reading attached to a product at a point in time."""

    temperature: float
    humidity: float
    timestamp: datetime

    @property
    def timestamp_ms(self) -> int:
        return to_epoch_ms(self.timestamp)


@dataclass(frozen=True)
class Product:
    """
    One simulated stock-keeping unit.

    Static attributes (identity, setpoints, capacity) never change during a run;
    the tick engine produces a new Product for every tick with updated stock,
    sensors, status and restock time.
    """

    product_id: str
    name: str
    product_type: ProductType
    ideal_temp: float
    ideal_humidity: float
    max_stock: int
    current_stock: int
    reorder_level: int
    price: float
    demand_rate: int
    sensors: SensorReading
    status: ProductStatus = ProductStatus.OK
    last_restock: datetime | None = None

    def __post_init__(self):
        if self.max_stock <= 0:
            raise InventoryInvariantError(
                f"{self.product_id}: max_stock must be positive, got {self.max_stock}"
            )
        if not (0 <= self.current_stock <= self.max_stock):
            raise InventoryInvariantError(
                f"{self.product_id}: current_stock {self.current_stock} outside [0, {self.max_stock}]"
            )
        if self.reorder_level < 0 or self.demand_rate < 0 or self.price < 0:
            raise InventoryInvariantError(
                f"{self.product_id}: reorder_level, demand_rate and price must be non-negative"
            )

    @property
    def temperature_deviation(self) -> float:
        return abs(self.sensors.temperature - self.ideal_temp)

    @property
    def is_warning(self) -> bool:
        return self.status == ProductStatus.WARNING


def derive_status(temperature: float, ideal_temp: float) -> ProductStatus:
    """Return WARNING when the sensed temperature strays too far from the setpoint."""
    if abs(temperature - ideal_temp) > TEMPERATURE_WARNING_THRESHOLD:
        return ProductStatus.WARNING
    return ProductStatus.OK
