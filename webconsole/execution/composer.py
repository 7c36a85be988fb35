from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from webconsole.execution.engine import ExecutionResult

STATUS_OK = 200
STATUS_BAD_REQUEST = 400
STATUS_FORBIDDEN = 403

NOT_ALLOWED_PREFIX = "Command not allowed: "
FAILED_PREFIX = "Command failed: "


@dataclass(slots=True, frozen=True)
class ExecResponse:
    output: str | None = None
    error: str | None = None
    status_code: int = STATUS_OK

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.output is not None:
            payload["output"] = self.output
        if self.error is not None:
            payload["error"] = self.error
        return payload


def compose_rejection(reason: str) -> ExecResponse:
    return ExecResponse(error=f"{NOT_ALLOWED_PREFIX}{reason}", status_code=STATUS_FORBIDDEN)


def compose_failure(detail: str) -> ExecResponse:
    # Authorized command that failed at runtime: reported as data, not as an API error.
    return ExecResponse(error=f"{FAILED_PREFIX}{detail}", status_code=STATUS_OK)


def compose_result(result: ExecutionResult) -> ExecResponse:
    if not result.ok:
        return compose_failure(result.failure_detail)
    return ExecResponse(output=result.output, status_code=STATUS_OK)
