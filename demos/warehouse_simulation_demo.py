"""
Run the warehouse simulation from the command line.

Publishes every tick to the configured MQTT broker (see BrokerConfig.from_env)
unless --offline is given, then prints a summary of the run.

Run with: python -m demos.warehouse_simulation_demo --duration 10 --seed 7
"""

import argparse
import asyncio

from config.config import BrokerConfig, InvalidParametersError, SimulationParams
from connectors.mqtt_transport import MqttTransport, NullTransport
from environments.session import SimulationSession
from models.events import SimulationSnapshot
from utils.logger import get_logger

logger = get_logger("warehouse-demo")


def log_snapshot(snapshot: SimulationSnapshot) -> None:
    agg = snapshot.aggregate
    warnings = [
        f"{p.product_id}({p.temperature_deviation:.1f}C off)" for p in snapshot.products if p.is_warning
    ]
    logger.info(
        f"demand={agg.demand} inventory={agg.inventory_level} reordered={agg.reorder_quantity} "
        f"lead_time={agg.lead_time_days}d stockouts={agg.stockout}"
        + (f" warnings={warnings}" if warnings else "")
    )


async def run_simulation(
    duration: float,
    params: SimulationParams,
    seed: int | None = None,
    offline: bool = False,
) -> SimulationSession:
    transport = NullTransport() if offline else MqttTransport(BrokerConfig.from_env())
    session = SimulationSession(transport=transport, params=params, seed=seed)
    session.add_tick_listener(log_snapshot)
    session.start()
    try:
        await asyncio.sleep(duration)
    finally:
        session.stop()
    summary = session.history_buffer.summary()
    logger.info(f"Run finished: {summary}")
    return session


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Warehouse inventory simulation")
    parser.add_argument("--duration", type=float, default=10.0, help="seconds to run")
    parser.add_argument("--interval", type=float, default=None, help="seconds between ticks")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--offline", action="store_true", help="do not connect to the broker")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        params = SimulationParams.from_env()
        if args.interval is not None:
            params.simulation_interval = args.interval
        params.validate()
    except InvalidParametersError as e:
        logger.error(f"Invalid simulation parameters: {e}")
        return 2
    asyncio.run(run_simulation(args.duration, params, seed=args.seed, offline=args.offline))
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        logger.info("Demo stopped by user.")
