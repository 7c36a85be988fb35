from __future__ import annotations

import asyncio
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from webconsole.config import DEFAULT_EXEC_TIMEOUT_SECONDS, Settings
from webconsole.errors import ExecutableResolutionError
from webconsole.observability.logging import get_logger

logger = get_logger("engine")


@dataclass(slots=True)
class ExecutionResult:
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    error: str = ""
    timed_out: bool = False

    @property
    def output(self) -> str:
        return self.stdout if self.stdout != "" else self.stderr

    @property
    def ok(self) -> bool:
        # A non-zero exit that printed something is reported as output, the way
        # a terminal user would read it.
        if self.error:
            return False
        return self.exit_code == 0 or self.output != ""

    @property
    def failure_detail(self) -> str:
        if self.error:
            return self.error
        return f"exit status {self.exit_code}"


@dataclass(slots=True, frozen=True)
class ResolvedExecutable:
    path: str
    via_fallback: bool = False


def _self_executable(cli_name: str) -> str | None:
    # Launchers (uvicorn, gunicorn, pytest, python) also show up as argv[0];
    # only a program carrying the CLI's own name counts as the trusted binary.
    raw = sys.argv[0] if sys.argv else ""
    if raw in {"", "-", "-c", "-m"}:
        return None
    try:
        candidate = Path(raw).resolve()
    except OSError:
        return None
    if candidate.name != cli_name and Path(raw).name != cli_name:
        return None
    if candidate.is_file() and os.access(candidate, os.X_OK):
        return str(candidate)
    return None


def resolve_executable(settings: Settings) -> ResolvedExecutable:
    if settings.cli_path:
        return ResolvedExecutable(path=settings.cli_path)

    own_path = _self_executable(settings.cli_name)
    if own_path is not None:
        return ResolvedExecutable(path=own_path)

    if settings.fail_closed:
        raise ExecutableResolutionError("cannot resolve path of the running executable")

    fallback = shutil.which(settings.cli_name) or settings.cli_name
    logger.warning(
        "executable_path_fallback name=%s resolved=%s",
        settings.cli_name,
        fallback,
    )
    return ResolvedExecutable(path=fallback, via_fallback=True)


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


async def execute(
    tokens: list[str],
    executable: str,
    timeout: float = DEFAULT_EXEC_TIMEOUT_SECONDS,
) -> ExecutionResult:
    """Run ``executable`` with ``tokens`` as argv, without a shell.

    Output of a process that outlives ``timeout`` is discarded: the process is
    killed and the result only records the timeout. Cancellation of the
    awaiting task also kills the process before propagating.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            *tokens,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        logger.error(
            "process_launch_failed executable=%s error=%s",
            executable,
            exc,
        )
        return ExecutionResult(error=f"cannot start {executable}: {exc.strerror or exc}")

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill(process)
        logger.warning("process_timeout executable=%s timeout=%ss", executable, timeout)
        return ExecutionResult(
            exit_code=process.returncode,
            error=f"timed out after {timeout:g}s",
            timed_out=True,
        )
    except asyncio.CancelledError:
        await _kill(process)
        logger.info("process_cancelled executable=%s", executable)
        raise

    return ExecutionResult(
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        exit_code=process.returncode,
    )
