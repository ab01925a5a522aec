"""
FastAPI application exposing read-only views of a running warehouse simulation,
plus start/stop controls.

Run with: uvicorn demos.warehouse_api_demo:app --reload
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from config.config import BrokerConfig, InvalidParametersError, SimulationParams
from connectors.mqtt_transport import MqttTransport
from environments.session import SimulationSession
from models.events import ProductPayload

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger("warehouse-api")


class ParamsUpdate(BaseModel):
    initial_stock: int | None = None
    reorder_point: int | None = None
    reorder_quantity: int | None = None
    demand_min: int | None = None
    demand_max: int | None = None
    lead_time_min: int | None = None
    lead_time_max: int | None = None
    simulation_interval: float | None = None


def create_app(session: SimulationSession | None = None) -> FastAPI:
    if session is None:
        session = SimulationSession(
            transport=MqttTransport(BrokerConfig.from_env()),
            params=SimulationParams.from_env(),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        session.stop()

    app = FastAPI(title="Warehouse Simulation Service", lifespan=lifespan)
    app.state.session = session

    @app.get("/status")
    async def get_status() -> dict[str, Any]:
        latest = session.history_buffer.latest
        return {
            "state": session.state.value,
            "connection_status": session.connection_status,
            "tick_count": session.tick_count,
            "total_stock": session.registry.total_stock(),
            "latest_tick": latest.to_payload() if latest else None,
            "params": asdict(session.params),
        }

    @app.get("/products")
    async def get_products() -> list[dict[str, Any]]:
        return [
            ProductPayload.from_product(p).model_dump(mode="json", by_alias=True)
            for p in session.products
        ]

    @app.get("/products/{product_id}")
    async def get_product(product_id: str) -> dict[str, Any]:
        product = session.registry.get(product_id)
        if product is None:
            raise HTTPException(status_code=404, detail=f"Unknown product {product_id}")
        return ProductPayload.from_product(product).model_dump(mode="json", by_alias=True)

    @app.get("/current")
    async def get_current() -> dict[str, Any] | None:
        return session.current.to_payload() if session.current else None

    @app.get("/history")
    async def get_history() -> list[dict[str, Any]]:
        return [r.to_payload() for r in session.history]

    @app.get("/history/summary")
    async def get_history_summary() -> dict[str, Any]:
        return session.history_buffer.summary()

    @app.put("/params")
    async def update_params(update: ParamsUpdate) -> dict[str, Any]:
        if session.is_running:
            raise HTTPException(status_code=409, detail="Stop the simulation before changing parameters")
        merged = {**asdict(session.params), **update.model_dump(exclude_none=True)}
        try:
            session.update_params(SimulationParams(**merged))
        except InvalidParametersError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return asdict(session.params)

    @app.post("/start")
    async def start() -> dict[str, Any]:
        try:
            started = session.start()
        except InvalidParametersError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return {"started": started, "state": session.state.value}

    @app.post("/stop")
    async def stop() -> dict[str, Any]:
        session.stop()
        return {"stopped": True, "state": session.state.value}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Publishing needs a reachable MQTT broker; the API works without one.
    uvicorn.run(app, host="0.0.0.0", port=8010)
