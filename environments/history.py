"""
Per-tick aggregate history for display layers.
"""

from collections import deque
from collections.abc import Iterator

import pandas as pd

from models.events import AggregateResult

HISTORY_COLUMNS = [
    "timestamp",
    "demand",
    "inventory_level",
    "reorder_quantity",
    "lead_time_days",
    "stockout",
]


class TickHistory:
    """Aggregates in tick order. Unbounded unless ``maxlen`` is given."""

    def __init__(self, maxlen: int | None = None):
        self._records: deque[AggregateResult] = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int | None:
        return self._records.maxlen

    def append(self, result: AggregateResult) -> None:
        self._records.append(result)

    def clear(self) -> None:
        self._records.clear()

    @property
    def latest(self) -> AggregateResult | None:
        return self._records[-1] if self._records else None

    def as_list(self) -> list[AggregateResult]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AggregateResult]:
        return iter(self.as_list())

    def to_dataframe(self) -> pd.DataFrame:
        rows = [r.model_dump() for r in self._records]
        df = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
        if not df.empty:
            df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
        return df

    def summary(self) -> dict[str, float | int]:
        """Run-level totals for a metrics panel."""
        if not self._records:
            return {
                "ticks": 0,
                "total_demand": 0,
                "total_reordered": 0,
                "stockout_ticks": 0,
                "mean_inventory": 0.0,
            }
        df = self.to_dataframe()
        return {
            "ticks": int(len(df)),
            "total_demand": int(df["demand"].sum()),
            "total_reordered": int(df["reorder_quantity"].sum()),
            "stockout_ticks": int((df["stockout"] > 0).sum()),
            "mean_inventory": float(df["inventory_level"].mean()),
        }
