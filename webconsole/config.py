from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8788
DEFAULT_EXEC_TIMEOUT_SECONDS = 30.0
DEFAULT_CLI_NAME = "nylas"
DEFAULT_MAX_BODY_BYTES = 1 << 20
DEFAULT_CONSOLE_VERSION = "0.0.0-dev"


@dataclass(slots=True, frozen=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    exec_timeout: float = DEFAULT_EXEC_TIMEOUT_SECONDS
    cli_path: str = ""
    cli_name: str = DEFAULT_CLI_NAME
    fail_closed: bool = False
    demo_mode: bool = False
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_positive_int(value: str | None, default: int) -> int:
    try:
        parsed = int((value or "").strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_positive_float(value: str | None, default: float) -> float:
    try:
        parsed = float((value or "").strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def get_port() -> int:
    return _parse_positive_int(os.getenv("PORT"), DEFAULT_PORT)


def load_settings() -> Settings:
    return Settings(
        host=os.getenv("WEBCONSOLE_HOST", DEFAULT_HOST).strip() or DEFAULT_HOST,
        port=get_port(),
        exec_timeout=_parse_positive_float(os.getenv("WEBCONSOLE_EXEC_TIMEOUT"), DEFAULT_EXEC_TIMEOUT_SECONDS),
        cli_path=os.getenv("WEBCONSOLE_CLI_PATH", "").strip(),
        cli_name=os.getenv("WEBCONSOLE_CLI_NAME", DEFAULT_CLI_NAME).strip() or DEFAULT_CLI_NAME,
        fail_closed=_parse_bool(os.getenv("WEBCONSOLE_FAIL_CLOSED"), False),
        demo_mode=_parse_bool(os.getenv("WEBCONSOLE_DEMO_MODE"), False),
        max_body_bytes=_parse_positive_int(os.getenv("WEBCONSOLE_MAX_BODY_BYTES"), DEFAULT_MAX_BODY_BYTES),
    )


def get_console_version() -> str:
    raw_version = os.getenv("WEBCONSOLE_VERSION", "").strip().removeprefix("v").removeprefix("V").strip()
    return raw_version or DEFAULT_CONSOLE_VERSION
