"""Regression tests for websocket payload shape and client message handling."""

import json

import pytest
from fastapi.testclient import TestClient

from pipeline.config import RippleConfig
from visualization.ui_server import RippleStateManager, ServerConfig, create_app


def _config() -> ServerConfig:
    return ServerConfig(ripple=RippleConfig(grid_size=4, grid_spacing=1.0, wave_speed=2.0))


def _manager() -> RippleStateManager:
    return RippleStateManager(_config())


def test_state_message_has_grid_waves_params_and_system() -> None:
    manager = _manager()
    state = manager.step()

    for key in ("timestamp", "grid", "waves", "params", "system"):
        assert key in state

    grid = state["grid"]
    assert grid["size"] == 4
    assert len(grid["heights"]) == 16
    assert len(grid["colors"]) == 16 * 4

    assert state["params"]["lifetime"] > 0.0
    assert state["system"]["tick_count"] == 1
    assert state["system"]["press_state"] == "up"
    json.dumps(state)


def test_state_before_first_step_has_empty_grid() -> None:
    state = _manager().build_state_message()
    assert state["grid"]["heights"] == []
    assert state["waves"] == []


def test_ping_is_answered() -> None:
    assert _manager().handle_client_message("ping") == "pong"


def test_hit_message_starts_wave() -> None:
    manager = _manager()
    manager.handle_client_message(json.dumps({"type": "hit", "x": 0.5, "z": -0.5}))
    state = manager.step()

    assert state["system"]["active_waves"] == 1
    wave = state["waves"][0]
    assert (wave["x"], wave["z"]) == (0.5, -0.5)
    assert wave["radius"] >= 0.0


def test_hit_starts_at_the_step_that_applies_it() -> None:
    manager = _manager()
    manager.step()
    manager.step()

    manager.queue_hit(0.0, 0.0)
    assert manager.pending_hit_count == 1
    assert manager.simulation.pending_hit_count == 0

    state = manager.step()
    wave = state["waves"][0]
    assert wave["start_time"] == pytest.approx(state["timestamp"])
    assert wave["age"] == 0.0
    assert manager.pending_hit_count == 0


def test_pointer_press_starts_one_wave_while_held() -> None:
    manager = _manager()
    press = {"type": "pointer", "down": True, "x": 0.0, "z": 0.0}

    manager.handle_client_message(json.dumps(press))
    for _ in range(5):
        state = manager.step()
        manager.handle_client_message(json.dumps(press))

    assert state["system"]["active_waves"] == 1
    assert state["system"]["press_state"] == "down"


def test_screen_pointer_is_picked_through_camera() -> None:
    manager = _manager()
    manager.handle_client_message(
        json.dumps(
            {
                "type": "pointer",
                "down": True,
                "screen": {"x": 400, "y": 300, "width": 800, "height": 600},
            }
        )
    )
    state = manager.step()

    wave = state["waves"][0]
    assert wave["x"] == pytest.approx(0.0, abs=1e-6)
    assert wave["z"] == pytest.approx(0.0, abs=1e-6)


def test_ray_pointer_message() -> None:
    manager = _manager()
    manager.handle_client_message(
        json.dumps(
            {
                "type": "pointer",
                "down": True,
                "ray": {"origin": [1.0, 5.0, 1.0], "direction": [0.0, -1.0, 0.0]},
            }
        )
    )
    state = manager.step()
    assert state["waves"][0]["x"] == pytest.approx(1.0)


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2, 3]",
        json.dumps({"type": "teleport"}),
        json.dumps({"type": "hit", "x": 1.0}),
        json.dumps({"type": "hit", "x": "nan", "z": 0.0}),
        json.dumps({"type": "pointer", "down": True, "ray": {"origin": [0, 1, 0], "direction": [0, 0, 0]}}),
    ],
)
def test_malformed_messages_are_ignored(text: str) -> None:
    manager = _manager()
    assert manager.handle_client_message(text) is None
    assert manager.rejected_messages == 1

    state = manager.step()
    assert state["system"]["active_waves"] == 0


def test_http_status_and_hit_endpoints() -> None:
    app = create_app(_config())
    client = TestClient(app)

    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"

    response = client.post("/hit", json={"x": 1.0, "z": 2.0})
    assert response.status_code == 200
    assert response.json() == {"queued": True, "pending": 1}

    status = client.get("/status").json()
    assert "grid" in status
    assert status["system"]["active_waves"] == 0

    app.state.manager.step()
    assert app.state.manager.simulation.active_wave_count == 1


def test_websocket_ping() -> None:
    client = TestClient(create_app(_config()))
    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_text() == "pong"
