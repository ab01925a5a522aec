"""
Simulation session: owns the product registry, the history and the tick timer
for one simulation run, and hands every tick's payloads to the transport.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

import numpy as np

from config.config import SimulationParams
from connectors.mqtt_transport import PublishTransport
from environments.history import TickHistory
from environments.registry import ProductRegistry
from environments.warehouse import TickOutcome, WarehouseSimulator
from models.enums import ConnectionStatus, SchedulerState
from models.events import AggregateResult, SimulationSnapshot
from models.product import Product
from utils.periodic import PeriodicTask

logger = logging.getLogger(__name__)

TickListener = Callable[[SimulationSnapshot], None]


class SimulationSession:
    """
    Start/stop lifecycle around the tick engine.

    ``start()`` and ``stop()`` must be called from the thread running the asyncio
    event loop; the repeating timer lives on that loop. Connection status updates
    may arrive from the transport's own thread and only replace a string.
    ``stop()`` runs the transport's disconnect inline; for ``MqttTransport`` that
    joins the paho network thread, which can hold the loop for one select cycle.
    """

    def __init__(
        self,
        transport: PublishTransport,
        params: SimulationParams | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        clock: Callable[[], datetime] | None = None,
        registry: ProductRegistry | None = None,
        history_maxlen: int | None = None,
    ):
        self.params = params or SimulationParams()
        self.transport = transport
        self.simulator = WarehouseSimulator(seed=seed, rng=rng, clock=clock)
        self.registry = registry or ProductRegistry()
        self._history = TickHistory(maxlen=history_maxlen)
        self._state = SchedulerState.STOPPED
        self._timer: PeriodicTask | None = None
        self._current: SimulationSnapshot | None = None
        self._connection_status = ConnectionStatus.DISCONNECTED.value
        self._listeners: list[TickListener] = []
        self.tick_count = 0

    # Read-only views for display layers

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    @property
    def products(self) -> tuple[Product, ...]:
        return self.registry.products

    @property
    def history(self) -> list[AggregateResult]:
        return self._history.as_list()

    @property
    def history_buffer(self) -> TickHistory:
        return self._history

    @property
    def current(self) -> SimulationSnapshot | None:
        return self._current

    @property
    def connection_status(self) -> str:
        return self._connection_status

    def _on_status(self, status: str) -> None:
        self._connection_status = status

    def add_tick_listener(self, listener: TickListener) -> None:
        if not callable(listener):
            raise TypeError("Tick listener must be callable.")
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_tick_listener(self, listener: TickListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def update_params(self, params: SimulationParams) -> None:
        """Replace the parameters of the next run. Rejected while running."""
        if self.is_running:
            raise RuntimeError("Cannot change parameters while the simulation is running")
        self.params = replace(params).validate()

    # Lifecycle

    def start(self) -> bool:
        """
        Begin a new run. Returns False (and does nothing) if already running.

        Raises InvalidParametersError before any side effect if the params are invalid,
        and RuntimeError (also before any side effect) when no event loop is running.
        """
        if self.is_running:
            logger.warning("Simulation already running; ignoring start()")
            return False
        self.params.validate()
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError("start() must be called from a running event loop") from None

        now = self.simulator.clock()
        self.registry.reset(now)
        self._history.clear()
        self._current = None
        self.tick_count = 0
        self.transport.connect(self._on_status)
        self._state = SchedulerState.RUNNING
        logger.info(
            f"Simulation started with {len(self.registry)} products, "
            f"interval {self.params.simulation_interval}s"
        )

        self.run_tick()
        self._timer = PeriodicTask(self.run_tick, self.params.simulation_interval, name="simulation-tick")
        self._timer.start()
        return True

    def stop(self) -> None:
        """Disarm the timer and disconnect. No further ticks fire after this returns."""
        if not self.is_running:
            return
        self._state = SchedulerState.STOPPED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.transport.disconnect()
        self._connection_status = ConnectionStatus.DISCONNECTED.value
        logger.info(f"Simulation stopped after {self.tick_count} ticks")

    def run_tick(self) -> TickOutcome | None:
        """Compute one tick, update registry and history, publish payloads."""
        if not self.is_running:
            return None
        outcome = self.simulator.step(self.registry.products, self.params)
        self.registry.replace_all(outcome.products)
        self._history.append(outcome.aggregate)
        self.tick_count += 1

        for event in outcome.events:
            self._publish(event)
        self._publish(outcome.aggregate)

        self._current = SimulationSnapshot(aggregate=outcome.aggregate, products=outcome.products)
        self._notify(self._current)
        return outcome

    def _publish(self, payload) -> None:
        try:
            self.transport.publish(payload)
        except Exception as e:
            logger.error(f"Transport raised during publish; continuing tick: {type(e).__name__}: {e}")

    def _notify(self, snapshot: SimulationSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Error in tick listener {getattr(listener, '__name__', listener)!r}: {e}")
