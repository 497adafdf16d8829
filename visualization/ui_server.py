"""
ui_server.py

Real-time WebSocket server streaming ripple grid state to a frontend.

Pipeline per broadcast step:
    Pointer messages -> PointerInputSource (press edge + ground pick)
        -> RippleSimulation.tick (add, prune, evaluate) -> JSON state -> WebSocket

Clients send pointer updates (world point, picking ray, or screen point
resolved through the server camera) and direct hit requests; every
connected client receives the same state message each step.
"""

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Set, Tuple

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel
import uvicorn

from contracts.validation import ValidationError, validate_finite_scalar
from interaction.input_source import PointerInputSource
from interaction.raycast import PerspectiveCamera, Ray
from pipeline.config import RippleConfig
from pipeline.logging_config import setup_logging
from pipeline.simulation import RippleSimulation
from waves.field import FieldEvaluator

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """Server configuration parameters."""

    host: str = "localhost"
    port: int = 8000
    ws_path: str = "/ws"

    target_fps: float = 30.0
    dt: float = 1.0 / 30.0

    ripple: RippleConfig = field(default_factory=RippleConfig)
    max_workers: int = 1

    camera_position: Tuple[float, float, float] = (0.0, 30.0, -30.0)
    camera_target: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    camera_fov_deg: float = 60.0


class HitRequest(BaseModel):
    """Body of POST /hit: a ground-plane point."""

    x: float
    z: float


class RippleStateManager:
    """Owns the simulation and input state and builds dashboard updates."""

    def __init__(self, config: ServerConfig):
        self.config = config

        self._params = config.ripple.to_parameters()
        self._simulation = RippleSimulation(
            self._params,
            evaluator=FieldEvaluator(max_workers=config.max_workers),
        )
        self._input = PointerInputSource()
        self._camera = PerspectiveCamera(
            position=config.camera_position,
            target=config.camera_target,
            fov_deg=config.camera_fov_deg,
        )

        self._time = 0.0
        self._pending_hits: List[Tuple[float, float]] = []
        self._frame_times: List[float] = []
        self._actual_fps = 0.0
        self._latency_ms = 0.0
        self._rejected_messages = 0

    @property
    def simulation(self) -> RippleSimulation:
        return self._simulation

    @property
    def input_source(self) -> PointerInputSource:
        return self._input

    @property
    def time(self) -> float:
        return self._time

    @property
    def rejected_messages(self) -> int:
        return self._rejected_messages

    @property
    def pending_hit_count(self) -> int:
        return len(self._pending_hits)

    def step(self) -> Dict[str, Any]:
        step_start = time.time()

        self._time += self.config.dt

        for x, z in self._pending_hits:
            self._simulation.on_hit_event((x, 0.0, z), self._time)
        self._pending_hits.clear()

        hit = self._input.poll(self._time)
        if hit is not None:
            self._simulation.submit_hit(hit)

        self._simulation.tick(self._time)

        step_end = time.time()
        self._latency_ms = (step_end - step_start) * 1000.0

        self._frame_times.append(step_end)
        cutoff = step_end - 1.0
        self._frame_times = [t for t in self._frame_times if t > cutoff]
        self._actual_fps = float(len(self._frame_times))

        return self.build_state_message()

    def queue_hit(self, x: float, z: float) -> None:
        """Queue a hit at ground point (x, z); it starts at the next step's time."""
        x = validate_finite_scalar(x, "x")
        z = validate_finite_scalar(z, "z")
        self._pending_hits.append((x, z))

    def handle_client_message(self, text: str) -> Optional[str]:
        """
        Apply one client message.

        Accepted messages:
        - ``"ping"``
        - ``{"type": "pointer", "down": bool, "x": .., "z": ..}``
        - ``{"type": "pointer", "down": bool, "ray": {"origin": [..], "direction": [..]}}``
        - ``{"type": "pointer", "down": bool, "screen": {"x", "y", "width", "height"}}``
        - ``{"type": "hit", "x": .., "z": ..}``

        Returns
        -------
        Optional[str]
            Text to send back, if any. Malformed messages are logged and
            ignored.
        """
        if text == "ping":
            return "pong"

        try:
            message = json.loads(text)
            if not isinstance(message, dict):
                raise ValueError("message must be a JSON object")

            kind = message.get("type")
            if kind == "pointer":
                self._apply_pointer(message)
            elif kind == "hit":
                self.queue_hit(float(message["x"]), float(message["z"]))
            else:
                raise ValueError(f"unknown message type {kind!r}")
        except (ValueError, KeyError, TypeError) as exc:
            # ValidationError and JSONDecodeError are ValueErrors
            self._rejected_messages += 1
            logger.warning("Ignoring malformed client message: %s", exc)

        return None

    def _apply_pointer(self, message: Dict[str, Any]) -> None:
        is_down = bool(message.get("down", False))

        if "ray" in message:
            ray_data = message["ray"]
            ray = Ray(origin=tuple(ray_data["origin"]), direction=tuple(ray_data["direction"]))
            self._input.set_pointer(is_down, ray=ray)
        elif "screen" in message:
            screen = message["screen"]
            ray = self._camera.screen_point_to_ray(
                float(screen["x"]),
                float(screen["y"]),
                float(screen["width"]),
                float(screen["height"]),
            )
            self._input.set_pointer(is_down, ray=ray)
        elif "x" in message and "z" in message:
            self._input.set_pointer(
                is_down, world_point=(float(message["x"]), 0.0, float(message["z"]))
            )
        else:
            self._input.set_pointer(is_down)

    def _serialize_grid(self) -> Dict[str, Any]:
        layout = self._simulation.layout
        frame = self._simulation.latest_frame

        if frame is None:
            return {
                "size": layout.size,
                "spacing": layout.spacing,
                "heights": [],
                "colors": [],
            }

        return {
            "size": int(layout.size),
            "spacing": float(layout.spacing),
            "max_abs_height": float(frame.max_abs_height),
            "heights": frame.heights.astype(float).tolist(),
            "colors": frame.colors.reshape(-1).astype(float).tolist(),
        }

    def _serialize_waves(self) -> List[Dict[str, Any]]:
        waves = []
        for source in self._simulation.snapshot().sources:
            age = source.age(self._time)
            waves.append(
                {
                    "x": float(source.origin_xz[0]),
                    "z": float(source.origin_xz[1]),
                    "start_time": float(source.start_time),
                    "age": float(age),
                    "radius": float(max(0.0, age) * self._params.speed),
                }
            )
        return waves

    def build_state_message(self) -> Dict[str, Any]:
        return {
            "timestamp": float(self._time),
            "grid": self._serialize_grid(),
            "waves": self._serialize_waves(),
            "params": {
                "amplitude": self._params.amplitude,
                "frequency": self._params.frequency,
                "damping": self._params.damping,
                "speed": self._params.speed,
                "lifetime": self._params.lifetime,
            },
            "system": {
                "fps": float(self._actual_fps),
                "latency_ms": float(self._latency_ms),
                "active_waves": int(self._simulation.active_wave_count),
                "tick_count": int(self._simulation.tick_count),
                "press_state": self._input.press_state.value,
            },
        }

    def close(self) -> None:
        self._simulation.close()


async def broadcast_loop(manager: RippleStateManager, clients: Set[WebSocket]) -> None:
    """Step the simulation at the target rate and push state to every client."""
    target_interval = 1.0 / manager.config.target_fps

    while True:
        loop_start = time.time()

        state = manager.step()

        for websocket in list(clients):
            try:
                await websocket.send_json(state)
            except Exception as exc:
                logger.debug("Dropping client after failed send: %s", exc)
                clients.discard(websocket)

        elapsed = time.time() - loop_start
        sleep_time = target_interval - elapsed
        if sleep_time > 0:
            await asyncio.sleep(sleep_time)
        else:
            await asyncio.sleep(0)


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The state manager is created immediately; the broadcast loop runs for
    the lifetime of the application.
    """
    config = config if config is not None else ServerConfig()
    manager = RippleStateManager(config)
    clients: Set[WebSocket] = set()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = asyncio.create_task(broadcast_loop(manager, clients))
        logger.info("Ripple grid server started (%.1f Hz)", config.target_fps)
        try:
            yield
        finally:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            manager.close()
            logger.info("Ripple grid server stopped")

    app = FastAPI(title="Ripple Grid Server", lifespan=lifespan)
    app.state.manager = manager
    app.state.clients = clients

    @app.websocket(config.ws_path)
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("Dashboard connected from %s", websocket.client)
        clients.add(websocket)

        try:
            while True:
                text = await websocket.receive_text()
                reply = manager.handle_client_message(text)
                if reply is not None:
                    await websocket.send_text(reply)
        except WebSocketDisconnect:
            logger.info("Dashboard disconnected")
        finally:
            clients.discard(websocket)

    @app.get("/")
    async def root() -> Dict[str, str]:
        return {"status": "running", "service": "Ripple Grid Server"}

    @app.get("/status")
    async def status() -> Dict[str, Any]:
        return manager.build_state_message()

    @app.post("/hit")
    async def hit(request: HitRequest) -> Dict[str, Any]:
        try:
            manager.queue_hit(request.x, request.z)
        except ValidationError as exc:
            return {"queued": False, "error": str(exc)}
        return {"queued": True, "pending": manager.pending_hit_count}

    return app


def run_server(config: Optional[ServerConfig] = None) -> None:
    """Run the UI server."""
    config = config if config is not None else ServerConfig()

    logger.info("Starting server at http://%s:%d", config.host, config.port)
    logger.info("WebSocket endpoint: ws://%s:%d%s", config.host, config.port, config.ws_path)
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Ripple Grid Server")
    parser.add_argument("--host", default="localhost", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--fps", type=float, default=30.0, help="Target update rate (Hz)")
    parser.add_argument("--grid-size", type=int, default=32, help="Elements per grid side")
    parser.add_argument("--spacing", type=float, default=1.1, help="Element spacing")
    parser.add_argument("--amplitude", type=float, default=1.5, help="Wave amplitude")
    parser.add_argument("--frequency", type=float, default=6.0, help="Wave frequency (rad/s)")
    parser.add_argument("--damping", type=float, default=0.8, help="Wave damping")
    parser.add_argument("--speed", type=float, default=12.0, help="Wave speed")
    parser.add_argument("--workers", type=int, default=1, help="Field evaluation threads")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    args = parser.parse_args()

    setup_logging(level=getattr(logging, args.log_level.upper(), logging.INFO))

    run_server(
        ServerConfig(
            host=args.host,
            port=args.port,
            target_fps=args.fps,
            dt=1.0 / args.fps,
            ripple=RippleConfig(
                grid_size=args.grid_size,
                grid_spacing=args.spacing,
                wave_amplitude=args.amplitude,
                wave_frequency=args.frequency,
                wave_damping=args.damping,
                wave_speed=args.speed,
            ),
            max_workers=args.workers,
        )
    )
