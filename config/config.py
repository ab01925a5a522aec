"""
Configuration classes for the warehouse simulation.
Defines simulation policy parameters and broker settings in a type-safe, extensible way.
"""

import os
from dataclasses import dataclass, fields

from utils.env import load_project_dotenv


class InvalidParametersError(ValueError):
    """Raised when a configuration is rejected before a simulation run starts."""


@dataclass
class SimulationParams:
    initial_stock: int = 200
    reorder_point: int = 50
    reorder_quantity: int = 150
    demand_min: int = 10
    demand_max: int = 50
    lead_time_min: int = 1
    lead_time_max: int = 5
    simulation_interval: float = 0.5  # seconds between ticks

    def validate(self) -> "SimulationParams":
        """Check bounds; raise InvalidParametersError on the first problem found."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int | float):
                raise InvalidParametersError(f"{f.name} must be numeric, got {value!r}")
            if value < 0:
                raise InvalidParametersError(f"{f.name} must be non-negative, got {value}")
            if f.name != "simulation_interval" and not float(value).is_integer():
                raise InvalidParametersError(f"{f.name} must be a whole number, got {value}")
        if self.simulation_interval <= 0:
            raise InvalidParametersError(
                f"simulation_interval must be > 0, got {self.simulation_interval}"
            )
        if self.demand_min > self.demand_max:
            raise InvalidParametersError(
                f"demand_min ({self.demand_min}) exceeds demand_max ({self.demand_max})"
            )
        if self.lead_time_min > self.lead_time_max:
            raise InvalidParametersError(
                f"lead_time_min ({self.lead_time_min}) exceeds lead_time_max ({self.lead_time_max})"
            )
        return self

    @classmethod
    def from_env(cls, prefix: str = "WAREHOUSE_SIM_") -> "SimulationParams":
        """Build params from defaults overridden by e.g. WAREHOUSE_SIM_DEMAND_MAX."""
        load_project_dotenv()
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if raw is None:
                continue
            caster = float if f.name == "simulation_interval" else int
            try:
                overrides[f.name] = caster(raw)
            except ValueError as e:
                raise InvalidParametersError(f"{prefix}{f.name.upper()}={raw!r} is not a number") from e
        return cls(**overrides)


@dataclass
class BrokerConfig:
    host: str = "test.mosquitto.org"
    port: int = 8080
    topic: str = "supplychain/warehouse/events"
    transport: str = "websockets"  # or "tcp"
    client_id_prefix: str = "sc_sim_"
    reconnect_period: float = 5.0  # seconds between transport-internal retries
    connect_timeout: float = 30.0
    keepalive: int = 60
    qos: int = 0  # best effort, no acknowledgement

    @classmethod
    def from_env(cls, prefix: str = "WAREHOUSE_MQTT_") -> "BrokerConfig":
        load_project_dotenv()
        config = cls()
        config.host = os.getenv(prefix + "HOST", config.host)
        config.topic = os.getenv(prefix + "TOPIC", config.topic)
        config.transport = os.getenv(prefix + "TRANSPORT", config.transport)
        raw_port = os.getenv(prefix + "PORT")
        if raw_port is not None:
            try:
                config.port = int(raw_port)
            except ValueError as e:
                raise InvalidParametersError(f"{prefix}PORT={raw_port!r} is not a valid port") from e
        if config.transport not in ("websockets", "tcp"):
            raise InvalidParametersError(f"Unsupported MQTT transport: {config.transport!r}")
        return config


# Example usage:
# params = SimulationParams(simulation_interval=1.0).validate()
# broker = BrokerConfig.from_env()
