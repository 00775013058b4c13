# rpc_server.py
from __future__ import annotations

import contextlib
import logging
from typing import Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from . import __version__ as APP_VERSION
from .config import SimulationConfig, configure_logging
from .state import SimulationState
from .storage_orm import Storage
from .utils import enc, tick_payload


class DelayBody(BaseModel):
    delay_ms: int = Field(..., ge=0)


def _get_state(request: Request) -> SimulationState:
    return request.app.state.simulation


def _require_storage(sim: SimulationState = Depends(_get_state)) -> Storage:
    if sim.storage is None:
        raise HTTPException(status_code=404, detail="Run history is disabled. Set MONTEPI_DB_PATH to enable it.")
    return sim.storage


def create_app(config: Optional[SimulationConfig] = None, storage: Optional[Storage] = None) -> FastAPI:
    """Build the simulation server.

    The scheduler loop lives on the server's event loop; nothing runs until
    ``/api/start`` is called unless ``config.autostart`` is set.
    """
    config = config or SimulationConfig.from_env()
    configure_logging(config.log_level)
    if storage is None and config.db_path:
        storage = Storage(config.db_path)
    sim = SimulationState(config, storage=storage)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.autostart:
            sim.scheduler.start()
        yield
        await sim.close()

    app = FastAPI(title="Monte Carlo Pi", version=APP_VERSION, lifespan=lifespan)
    app.state.simulation = sim

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*", "null"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Handlers touching the simulation are async so they run on the loop that owns the tick task.
    @app.get("/api/health")
    async def health(sim: SimulationState = Depends(_get_state)):
        return {"ok": True, "status": sim.scheduler.status.value, "version": APP_VERSION}

    @app.get("/api/state")
    async def get_state(sim: SimulationState = Depends(_get_state)):
        return sim.describe()

    @app.post("/api/start")
    async def start(sim: SimulationState = Depends(_get_state)):
        sim.scheduler.start()
        return sim.describe()

    @app.post("/api/pause")
    async def pause(sim: SimulationState = Depends(_get_state)):
        sim.scheduler.pause()
        return sim.describe()

    @app.post("/api/resume")
    async def resume(sim: SimulationState = Depends(_get_state)):
        sim.scheduler.resume()
        return sim.describe()

    @app.post("/api/toggle")
    async def toggle(sim: SimulationState = Depends(_get_state)):
        sim.scheduler.toggle()
        return sim.describe()

    @app.post("/api/reset")
    async def reset(sim: SimulationState = Depends(_get_state)):
        sim.scheduler.reset()
        return sim.describe()

    @app.post("/api/step")
    async def step(sim: SimulationState = Depends(_get_state)):
        try:
            report = sim.scheduler.step()
        except RuntimeError as e:
            raise HTTPException(status_code=409, detail=str(e))
        logging.debug("Manual step: %s", enc(tick_payload(report)))
        return tick_payload(report)

    @app.put("/api/delay")
    async def set_delay(body: DelayBody, sim: SimulationState = Depends(_get_state)):
        if body.delay_ms > sim.scheduler.max_delay_ms:
            raise HTTPException(
                status_code=422,
                detail=f"delay_ms must be between 0 and {sim.scheduler.max_delay_ms}",
            )
        sim.scheduler.set_delay(body.delay_ms)
        return sim.describe()

    @app.get("/api/samples")
    async def get_samples(
        n: int = Query(100, ge=1, le=100_000),
        sim: SimulationState = Depends(_get_state),
    ):
        return {"samples": sim.recent_samples(n)}

    @app.get("/api/runs")
    def get_runs(
        n: int = Query(100, ge=1, le=10_000),
        order: Literal["latest", "earliest"] = Query("latest"),
        storage: Storage = Depends(_require_storage),
    ):
        return {"runs": storage.fetch_runs(n=n, order=order)}

    @app.delete("/api/runs", status_code=200)
    def delete_runs(storage: Storage = Depends(_require_storage)):
        deleted = storage.delete_runs()
        return {"status": "ok", "deleted": deleted}

    return app
