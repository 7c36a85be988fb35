from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from webconsole.observability.logging import TRACE_HEADER, new_trace_id

DEFAULT_INTERNAL_MESSAGE = "Internal server error"
INVALID_BODY_MESSAGE = "Invalid request body"


class ExecutableResolutionError(RuntimeError):
    """The trusted CLI binary could not be located."""


def _resolve_trace_id(request: Request) -> str:
    trace_id = getattr(request.state, "trace_id", "")
    if trace_id:
        return trace_id

    trace_from_header = request.headers.get(TRACE_HEADER, "").strip()
    if trace_from_header:
        return trace_from_header

    return new_trace_id()


def error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    trace_id = _resolve_trace_id(request)
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers={TRACE_HEADER: trace_id},
    )
