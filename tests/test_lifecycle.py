"""Tests for settings parsing and the listener lifecycle."""

import asyncio
import signal
import socket

import pytest
import uvicorn

import sampha.server as server_mod
from sampha.config import DEFAULT_PORT, Settings
from sampha.main import create_app
from sampha.server import LifecycleServer, Server, ServerState


# ── Settings ─────────────────────────────────────────────────────────────────

class TestSettings:
    def test_default_port(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        assert Settings().PORT == DEFAULT_PORT == 8080

    def test_port_from_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "9090")
        assert Settings().PORT == 9090

    @pytest.mark.parametrize("value", ["", "abc", "80a", "0"])
    def test_bad_port_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("PORT", value)
        assert Settings().PORT == 8080

    def test_timeouts(self):
        s = Settings()
        assert s.IDLE_TIMEOUT == 60
        assert s.READ_TIMEOUT == 10
        assert s.WRITE_TIMEOUT == 30


class TestServer:
    def test_config(self):
        server = Server(Settings(PORT=9191, HOST="127.0.0.1"))
        config = server.config()
        assert config.port == 9191
        assert config.host == "127.0.0.1"
        assert config.timeout_keep_alive == 60
        assert config.access_log is False


# ── Lifecycle ────────────────────────────────────────────────────────────────

def _lifecycle_server(port=0):
    config = uvicorn.Config(create_app(), host="127.0.0.1", port=port, log_level="warning")
    return LifecycleServer(config)


class TestLifecycle:
    def test_initial_state(self):
        assert _lifecycle_server().state is ServerState.STARTING

    def test_first_signal_starts_graceful_shutdown(self):
        server = _lifecycle_server()
        server.handle_exit(signal.SIGINT, None)
        assert server.should_exit is True
        assert server.state is ServerState.SHUTTING_DOWN

    def test_second_signal_forces_exit(self, monkeypatch):
        calls = []
        monkeypatch.setattr(server_mod.os, "_exit", lambda code: calls.append(code))

        server = _lifecycle_server()
        server.handle_exit(signal.SIGINT, None)
        assert calls == []
        server.handle_exit(signal.SIGTERM, None)
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_serve_then_graceful_stop(self):
        server = _lifecycle_server()
        task = asyncio.create_task(server.serve())

        for _ in range(500):
            if server.started:
                break
            await asyncio.sleep(0.01)
        assert server.state is ServerState.SERVING

        server.handle_exit(signal.SIGTERM, None)
        await asyncio.wait_for(task, timeout=5)
        assert server.state is ServerState.STOPPED

    @pytest.mark.asyncio
    async def test_bind_failure_exits_non_zero(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen(1)
            port = sock.getsockname()[1]

            server = _lifecycle_server(port=port)
            with pytest.raises(SystemExit) as exc:
                await server.serve()
        assert exc.value.code == 1
        assert server.state is ServerState.STOPPED
