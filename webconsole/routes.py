from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from webconsole.config import Settings, get_console_version
from webconsole.errors import INVALID_BODY_MESSAGE, error_response
from webconsole.execution.composer import STATUS_BAD_REQUEST, ExecResponse
from webconsole.execution.runner import CommandRunner
from webconsole.observability.logging import TRACE_HEADER, get_logger
from webconsole.security.allowlist import command_families
from webconsole.security.classifier import CommandClassifier

router = APIRouter()
logger = get_logger("routes")

_DISCONNECT_POLL_SECONDS = 0.5
_CLIENT_CLOSED_REQUEST = 499


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_runner(request: Request) -> CommandRunner:
    return request.app.state.runner


def get_classifier(request: Request) -> CommandClassifier:
    return request.app.state.classifier


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, object]:
    return {"ok": True, "version": get_console_version(), "demo_mode": settings.demo_mode}


@router.get("/api/commands")
def list_commands(classifier: CommandClassifier = Depends(get_classifier)) -> dict[str, object]:
    allowed = classifier.allowed_commands
    return {"families": command_families(allowed), "commands": sorted(allowed)}


@router.post("/api/exec")
async def exec_command(
    request: Request,
    settings: Settings = Depends(get_settings),
    runner: CommandRunner = Depends(get_runner),
):
    payload, err = await _decode_exec_request(request, settings.max_body_bytes)
    if err is not None:
        return err

    response = await _run_until_disconnect(request, runner, payload["command"])
    if response is None:
        logger.info("exec_abandoned reason=client_disconnected")
        return error_response(request, _CLIENT_CLOSED_REQUEST, "Client disconnected")

    return JSONResponse(
        status_code=response.status_code,
        content=response.to_payload(),
        headers={TRACE_HEADER: request.state.trace_id},
    )


async def _run_until_disconnect(request: Request, runner: CommandRunner, command: str) -> ExecResponse | None:
    task = asyncio.create_task(runner.run(command))
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=_DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                return None
    finally:
        # The runner task owns the child process; it must not outlive the handler.
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


async def _decode_exec_request(
    request: Request,
    max_body_bytes: int,
) -> tuple[dict[str, Any], JSONResponse | None]:
    declared_length = request.headers.get("content-length", "").strip()
    if declared_length.isdigit() and int(declared_length) > max_body_bytes:
        return {}, error_response(request, STATUS_BAD_REQUEST, INVALID_BODY_MESSAGE)

    body = await request.body()
    if len(body) > max_body_bytes:
        return {}, error_response(request, STATUS_BAD_REQUEST, INVALID_BODY_MESSAGE)

    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, ValueError):
        return {}, error_response(request, STATUS_BAD_REQUEST, INVALID_BODY_MESSAGE)

    if not isinstance(payload, dict):
        return {}, error_response(request, STATUS_BAD_REQUEST, INVALID_BODY_MESSAGE)

    command = payload.get("command", "")
    if command is None:
        command = ""
    if not isinstance(command, str):
        return {}, error_response(request, STATUS_BAD_REQUEST, INVALID_BODY_MESSAGE)

    return {"command": command}, None
