"""
Tick engine for the warehouse inventory simulation.

Each tick draws demand for every product, replenishes products at or below
their reorder level back to capacity, drifts sensor readings around the ideal
setpoints and derives the health status. The computation is pure given the
random generator and the timestamp; publishing is left to the caller.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone

import numpy as np

from config.config import SimulationParams
from models.events import AggregateResult, ProductEvent, ProductPayload
from models.product import Product, SensorReading, derive_status
from utils.logger import get_logger

TEMPERATURE_DRIFT = 0.5  # +/- degrees around the ideal temperature
HUMIDITY_DRIFT = 2.0  # +/- percentage points around the ideal humidity


@dataclass(frozen=True)
class TickOutcome:
    products: tuple[Product, ...]
    aggregate: AggregateResult
    events: tuple[ProductEvent, ...]
    reorders: dict[str, int]  # product_id -> units reordered this tick (0 if none)


def demand_ceiling(product: Product, params: SimulationParams) -> int:
    """Upper bound of the per-tick demand draw: the product's rate, capped by demand_max."""
    return max(0, min(product.demand_rate, int(params.demand_max)))


def draw_sensors(product: Product, rng: np.random.Generator, now: datetime) -> SensorReading:
    temperature = round(product.ideal_temp + float(rng.uniform(-TEMPERATURE_DRIFT, TEMPERATURE_DRIFT)), 2)
    humidity = product.ideal_humidity + float(rng.uniform(-HUMIDITY_DRIFT, HUMIDITY_DRIFT))
    humidity = round(min(100.0, max(0.0, humidity)), 1)
    return SensorReading(temperature=temperature, humidity=humidity, timestamp=now)


def tick(
    products: Sequence[Product],
    params: SimulationParams,
    rng: np.random.Generator,
    now: datetime,
) -> TickOutcome:
    """Advance every product by one tick and build the aggregate and per-product events."""
    total_demand = 0
    total_inventory = 0
    total_reorder = 0
    stockouts = 0
    reorders: dict[str, int] = {}
    next_products: list[Product] = []

    for product in products:
        sold = int(rng.integers(0, demand_ceiling(product, params) + 1))
        total_demand += sold

        new_stock = max(0, product.current_stock - sold)
        if new_stock == 0:
            stockouts += 1

        reorder_qty = 0
        last_restock = product.last_restock
        if new_stock <= product.reorder_level:
            # Restock to full within the same tick
            reorder_qty = product.max_stock - new_stock
            new_stock = product.max_stock
            total_reorder += reorder_qty
            last_restock = now
        reorders[product.product_id] = reorder_qty

        sensors = draw_sensors(product, rng, now)
        total_inventory += new_stock

        next_products.append(
            replace(
                product,
                current_stock=new_stock,
                sensors=sensors,
                status=derive_status(sensors.temperature, product.ideal_temp),
                last_restock=last_restock,
            )
        )

    lead_time = int(rng.integers(int(params.lead_time_min), int(params.lead_time_max) + 1))
    aggregate = AggregateResult(
        timestamp=now,
        demand=total_demand,
        inventory_level=total_inventory,
        reorder_quantity=total_reorder,
        lead_time_days=lead_time,
        stockout=stockouts,
    )
    events = tuple(
        ProductEvent(timestamp=now, product=ProductPayload.from_product(p)) for p in next_products
    )
    return TickOutcome(
        products=tuple(next_products),
        aggregate=aggregate,
        events=events,
        reorders=reorders,
    )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WarehouseSimulator:
    """
    Stateful wrapper around ``tick`` owning the random source and the clock.

    Seeding the simulator (or injecting a generator) makes every run reproducible.
    """

    def __init__(
        self,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.clock = clock or utc_now
        self.ticks = 0
        self.logger = get_logger(self.__class__.__name__)

    def step(self, products: Sequence[Product], params: SimulationParams) -> TickOutcome:
        outcome = tick(products, params, self.rng, self.clock())
        self.ticks += 1
        agg = outcome.aggregate
        for product_id, qty in outcome.reorders.items():
            if qty:
                self.logger.info(f"Tick {self.ticks}: reordered {qty} units of {product_id}")
        if agg.stockout:
            self.logger.info(f"Tick {self.ticks}: {agg.stockout} product(s) hit zero stock")
        self.logger.debug(
            f"Tick {self.ticks}: demand={agg.demand}, inventory={agg.inventory_level}, "
            f"reordered={agg.reorder_quantity}, lead_time={agg.lead_time_days}d"
        )
        return outcome
