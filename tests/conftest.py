import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure project root is on sys.path to allow `import environments`, `import utils`, etc.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from connectors.mqtt_transport import serialize_payload  # noqa: E402
from models.enums import ConnectionStatus, ProductType  # noqa: E402
from models.product import Product, SensorReading  # noqa: E402

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class ScriptedRng:
    """Stand-in for numpy.random.Generator returning scripted draws.

    Integer draws fall back to the lower bound and uniform draws to the midpoint
    once their script is exhausted.
    """

    def __init__(self, integers: list[int] | None = None, uniforms: list[float] | None = None):
        self._integers = list(integers or [])
        self._uniforms = list(uniforms or [])
        self.integer_calls: list[tuple[int, int]] = []

    def integers(self, low, high):
        self.integer_calls.append((low, high))
        if self._integers:
            value = self._integers.pop(0)
            assert low <= value < high, f"scripted draw {value} outside [{low}, {high})"
            return value
        return low

    def uniform(self, low, high):
        if self._uniforms:
            value = self._uniforms.pop(0)
            assert low <= value <= high, f"scripted draw {value} outside [{low}, {high}]"
            return value
        return (low + high) / 2


class RecordingTransport:
    """In-memory transport that records what the session publishes."""

    def __init__(self, online: bool = True):
        self.online = online
        self.status = ConnectionStatus.DISCONNECTED.value
        self.sinks = []
        self.published: list[str] = []
        self.connect_calls = 0
        self.disconnect_calls = 0

    def _emit(self, status: str) -> None:
        self.status = status
        for sink in self.sinks:
            sink(status)

    def connect(self, status_sink=None):
        self.connect_calls += 1
        if status_sink is not None and status_sink not in self.sinks:
            self.sinks.append(status_sink)
        self._emit(ConnectionStatus.CONNECTING.value)
        if self.online:
            self._emit(ConnectionStatus.CONNECTED.value)

    def publish(self, payload, topic=None):
        if self.status != ConnectionStatus.CONNECTED.value:
            return None
        message = serialize_payload(payload)
        self.published.append(message)
        return message

    def disconnect(self):
        self.disconnect_calls += 1
        self._emit(ConnectionStatus.DISCONNECTED.value)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def scripted_rng():
    """Factory fixture: scripted_rng(integers=[...], uniforms=[...])."""
    return ScriptedRng


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def offline_transport() -> RecordingTransport:
    return RecordingTransport(online=False)


@pytest.fixture
def make_product():
    """Factory fixture building a valid Product with overridable fields."""

    def _make(**overrides) -> Product:
        values = {
            "product_id": "T001",
            "name": "Test Product",
            "product_type": ProductType.DRY,
            "ideal_temp": 20.0,
            "ideal_humidity": 40.0,
            "max_stock": 100,
            "current_stock": 80,
            "reorder_level": 10,
            "price": 1.0,
            "demand_rate": 5,
            "sensors": SensorReading(temperature=20.0, humidity=40.0, timestamp=FIXED_NOW),
        }
        values.update(overrides)
        return Product(**values)

    return _make
