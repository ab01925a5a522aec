"""
In-memory registry of the products taking part in the current simulation run.
"""

from collections.abc import Callable, Iterable, Iterator
from datetime import datetime

from config.catalog import build_initial_catalog
from models.product import Product


class ProductRegistry:
    """Ordered, authoritative product set. Only the simulation session writes to it."""

    def __init__(self, catalog_factory: Callable[[datetime], list[Product]] = build_initial_catalog):
        self._catalog_factory = catalog_factory
        self._products: dict[str, Product] = {}

    def reset(self, now: datetime) -> None:
        """Discard the current set and reload the seed catalog."""
        self._products = {}
        for product in self._catalog_factory(now):
            if product.product_id in self._products:
                raise ValueError(f"Duplicate product id in catalog: {product.product_id}")
            self._products[product.product_id] = product

    def replace_all(self, products: Iterable[Product]) -> None:
        """Install the next tick's product set; ids must match the current set."""
        incoming = {p.product_id: p for p in products}
        if incoming.keys() != self._products.keys():
            raise ValueError(
                f"Product set mismatch: expected {sorted(self._products)}, got {sorted(incoming)}"
            )
        self._products = {pid: incoming[pid] for pid in self._products}

    @property
    def products(self) -> tuple[Product, ...]:
        return tuple(self._products.values())

    def get(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    def total_stock(self) -> int:
        return sum(p.current_stock for p in self._products.values())

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(self.products)
