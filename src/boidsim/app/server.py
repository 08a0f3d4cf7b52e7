from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager, suppress
from dataclasses import asdict
from typing import Any, AsyncIterator, Dict, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import AppConfig
from ..sim.core.errors import ConfigError, PopulationError
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

MIN_STEPS_PER_SECOND = 1.0
MAX_STEPS_PER_SECOND = 240.0


class SimulationController:
    """Drives a :class:`World` at ``steps_per_second`` from an asyncio task.

    The step lock keeps at most one step in flight; config changes and
    resets take the same lock so they land between steps.
    """

    def __init__(self, config: AppConfig, broadcast_interval: Optional[int] = None):
        self.config = config
        self.world = World(config.simulation, config.driver)
        interval = config.broadcast_interval if broadcast_interval is None else broadcast_interval
        self.broadcast_interval = max(1, interval)
        self.running = False
        self.steps_per_second = config.driver.steps_per_second
        self.clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.world.step_count

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        if self._loop_task is not None:
            self._loop_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None

    async def reset(self, population_size: Optional[int] = None) -> None:
        async with self._lock:
            self.world.reset(population_size)
        await self._broadcast_snapshot()

    async def step_once(self) -> TickMetrics:
        async with self._lock:
            metrics = self.world.step()
        if metrics.tick % self.broadcast_interval == 0:
            await self._broadcast_snapshot()
        return metrics

    def set_speed(self, steps_per_second: float) -> float:
        self.steps_per_second = max(MIN_STEPS_PER_SECOND, min(MAX_STEPS_PER_SECOND, float(steps_per_second)))
        return self.steps_per_second

    async def update_weights(self, cohesion: float, separation: float, alignment: float) -> None:
        async with self._lock:
            self.world.update_weights(cohesion, separation, alignment)

    async def update_boundaries(self, x_min: float, y_min: float, x_max: float, y_max: float) -> None:
        async with self._lock:
            self.world.update_boundaries(x_min, y_min, x_max, y_max)

    def snapshot_payload(self) -> Dict[str, Any]:
        snapshot = self.world.snapshot()
        return {
            "type": "snapshot",
            "tick": snapshot.tick,
            "metrics": asdict(snapshot.metrics),
            "agents": snapshot.agents,
            "world": asdict(snapshot.world),
            "metadata": asdict(snapshot.metadata),
        }

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(1.0 / self.steps_per_second)
            if not self.running:
                continue
            await self.step_once()

    async def _broadcast_snapshot(self) -> None:
        if not self.clients:
            return
        payload = json.dumps(self.snapshot_payload())
        # Clients may disconnect while a send is pending.
        for client in list(self.clients):
            try:
                await client.send_text(payload)
            except (WebSocketDisconnect, RuntimeError):
                self.clients.discard(client)


def _float_field(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise HTTPException(status_code=422, detail=f"missing field: {key}")
    try:
        return float(payload[key])
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=f"{key} must be a number") from exc


def create_app(controller: SimulationController) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await controller.start()
        try:
            yield
        finally:
            await controller.shutdown()

    app = FastAPI(title="Boids Simulation", lifespan=lifespan)

    @app.get("/api/status")
    async def status() -> JSONResponse:
        metrics = controller.world.metrics
        return JSONResponse(
            {
                "running": controller.running,
                "tick": controller.tick,
                "population": len(controller.world.agents),
                "steps_per_second": controller.steps_per_second,
                "metrics": asdict(metrics) if metrics is not None else None,
            }
        )

    @app.get("/api/snapshot")
    async def snapshot() -> JSONResponse:
        return JSONResponse(controller.snapshot_payload())

    @app.post("/api/control/start")
    async def start_simulation() -> JSONResponse:
        await controller.start()
        return JSONResponse({"running": True})

    @app.post("/api/control/stop")
    async def stop_simulation() -> JSONResponse:
        await controller.stop()
        return JSONResponse({"running": False})

    @app.post("/api/control/step")
    async def step_simulation() -> JSONResponse:
        metrics = await controller.step_once()
        return JSONResponse({"tick": metrics.tick, "metrics": asdict(metrics)})

    @app.post("/api/control/reset")
    async def reset_simulation(payload: Optional[Dict[str, Any]] = None) -> JSONResponse:
        size = (payload or {}).get("population")
        try:
            await controller.reset(None if size is None else int(size))
        except (PopulationError, TypeError, ValueError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return JSONResponse({"running": controller.running, "tick": controller.tick})

    @app.post("/api/control/speed")
    async def set_speed(payload: Dict[str, Any]) -> JSONResponse:
        speed = controller.set_speed(_float_field(payload, "steps_per_second"))
        return JSONResponse({"steps_per_second": speed})

    @app.post("/api/config/weights")
    async def set_weights(payload: Dict[str, Any]) -> JSONResponse:
        values = [_float_field(payload, key) for key in ("cohesion", "separation", "alignment")]
        try:
            await controller.update_weights(*values)
        except ConfigError as exc:
            logger.warning("rejected weight update %s: %s", payload, exc)
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        config = controller.world.config
        return JSONResponse(
            {
                "cohesion": config.centering_factor,
                "separation": config.avoid_factor,
                "alignment": config.matching_factor,
            }
        )

    @app.post("/api/config/boundaries")
    async def set_boundaries(payload: Dict[str, Any]) -> JSONResponse:
        values = [_float_field(payload, key) for key in ("x_min", "y_min", "x_max", "y_max")]
        try:
            await controller.update_boundaries(*values)
        except ConfigError as exc:
            logger.warning("rejected boundary update %s: %s", payload, exc)
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return JSONResponse(asdict(controller.world.config.boundary))

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        controller.clients.add(websocket)
        await websocket.send_text(json.dumps(controller.snapshot_payload()))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            controller.clients.discard(websocket)

    return app


controller = SimulationController(AppConfig())
app = create_app(controller)

__all__ = ["app", "controller", "create_app", "SimulationController"]
