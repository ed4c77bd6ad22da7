from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from typing import Dict, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..config import AppConfig, FlockConfig
from ..errors import UnknownBehaviorError, UnknownParameterError
from ..sim.core.flock import Flock

logger = logging.getLogger(__name__)

# Unacknowledged snapshots kept for lagging clients; older ones are dropped.
MAX_QUEUED_SNAPSHOTS = 180


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: FlockConfig, broadcast_interval: int = 1):
        self.config = config
        self.flock = Flock(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque(maxlen=MAX_QUEUED_SNAPSHOTS)
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._tick_task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.flock.current_tick

    async def start(self) -> None:
        if self._tick_task is None:
            self._tick_task = asyncio.create_task(self._loop())
        self.running = True
        logger.info("Simulation started")

    async def stop(self) -> None:
        self.running = False
        logger.info("Simulation stopped")

    async def reset(self) -> None:
        async with self._lock:
            self.flock.reset()
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def step(self) -> None:
        async with self._lock:
            self.flock.tick()
        if self.tick % self.broadcast_interval == 0:
            await self._broadcast_snapshot()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(1.0 / (self.config.tick_rate * self.speed_multiplier))
            if not self.running:
                continue
            await self.step()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    async def handle_message(self, message: str) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            return
        if not isinstance(payload, dict):
            return
        if payload.get("type") == "ack":
            tick = payload.get("tick")
            if isinstance(tick, int):
                await self.acknowledge(tick)

    def set_parameter(self, group: str, name: str, value: float) -> bool:
        parameter = self.flock.behaviors.by_name(group).get_parameter(name)
        return parameter.set_value(value)

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.flock.snapshot()
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "behaviors": {name: asdict(behavior) for name, behavior in snapshot.behaviors.items()},
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except (WebSocketDisconnect, RuntimeError):
                stale.add(client)
        for client in stale:
            self.disconnect(client)

    def disconnect(self, client: WebSocket) -> None:
        self.clients.discard(client)
        self._client_last_sent.pop(client, None)


app = FastAPI(title="Flock Simulation")
app_config = AppConfig()
controller = SimulationController(app_config.simulation, broadcast_interval=app_config.broadcast_interval)


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.flock.snapshot()
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "population": len(controller.flock.boids),
            "metrics": asdict(snapshot.metrics),
        }
    )


@app.get("/api/parameters")
async def parameters() -> JSONResponse:
    groups = []
    for behavior in controller.flock.behaviors:
        entry = behavior.parameters.as_dict()
        entry["kind"] = behavior.kind.value
        entry["enabled"] = behavior.enabled
        entry["debugging"] = behavior.debugging
        groups.append(entry)
    return JSONResponse({"groups": groups})


@app.post("/api/parameters/{group}/{name}")
async def set_parameter(group: str, name: str, payload: dict) -> JSONResponse:
    try:
        value = float(payload["value"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=422, detail="expected a numeric 'value'")
    try:
        applied = controller.set_parameter(group, name, value)
    except (UnknownBehaviorError, UnknownParameterError) as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]))
    if not applied:
        raise HTTPException(status_code=422, detail=f"{value} is outside the bounds of {name!r}")
    return JSONResponse({"group": group, "name": name, "value": value})


@app.post("/api/behaviors/{kind}")
async def set_behavior(kind: str, payload: dict) -> JSONResponse:
    try:
        behavior = controller.flock.behaviors.by_name(kind)
    except UnknownBehaviorError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]))
    if "enabled" in payload:
        behavior.enabled = bool(payload["enabled"])
    if "debugging" in payload:
        behavior.debugging = bool(payload["debugging"])
    return JSONResponse({"kind": behavior.kind.value, "enabled": behavior.enabled, "debugging": behavior.debugging})


@app.post("/api/viewport")
async def set_viewport(payload: dict) -> JSONResponse:
    try:
        width = float(payload["width"])
        height = float(payload["height"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=422, detail="expected numeric 'width' and 'height'")
    if width <= 0 or height <= 0:
        raise HTTPException(status_code=422, detail="viewport must have a positive size")
    controller.flock.set_screen_size(width, height)
    return JSONResponse({"width": width, "height": height})


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.running = True
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    controller.running = False
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/rebias")
async def rebias_simulation() -> JSONResponse:
    biased = controller.flock.rebias()
    return JSONResponse({"biased": biased})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            await controller.handle_message(await websocket.receive_text())
    except WebSocketDisconnect:
        logger.debug("Websocket client disconnected")
    finally:
        controller.disconnect(websocket)


__all__ = ["app", "controller"]
