"""
Fixed seed catalog loaded at the start of every simulation run.
"""

from datetime import datetime

from models.enums import ProductType
from models.product import Product, SensorReading


def build_initial_catalog(now: datetime) -> list[Product]:
    """Return fresh seed products with sensor readings stamped at ``now``."""
    return [
        Product(
            product_id="P001",
            name="Pommes Golden (Frais)",
            product_type=ProductType.FRESH,
            ideal_temp=4.0,
            ideal_humidity=90.0,
            max_stock=500,
            current_stock=450,
            reorder_level=100,
            price=2.5,
            demand_rate=5,
            sensors=SensorReading(temperature=4.2, humidity=88.0, timestamp=now),
        ),
        Product(
            product_id="P002",
            name="Steaks Hachés (Surgelé)",
            product_type=ProductType.FROZEN,
            ideal_temp=-18.0,
            ideal_humidity=50.0,
            max_stock=300,
            current_stock=280,
            reorder_level=50,
            price=8.9,
            demand_rate=3,
            sensors=SensorReading(temperature=-18.5, humidity=55.0, timestamp=now),
        ),
        Product(
            product_id="P003",
            name="Riz Basmati 5kg (Sec)",
            product_type=ProductType.DRY,
            ideal_temp=20.0,
            ideal_humidity=40.0,
            max_stock=200,
            current_stock=150,
            reorder_level=20,
            price=12.0,
            demand_rate=1,
            sensors=SensorReading(temperature=21.0, humidity=38.0, timestamp=now),
        ),
    ]
