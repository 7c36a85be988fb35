from __future__ import annotations

from fastapi import FastAPI, Request

from webconsole.config import Settings, get_console_version, get_port, load_settings
from webconsole.errors import DEFAULT_INTERNAL_MESSAGE, error_response
from webconsole.execution.runner import build_runner
from webconsole.observability.logging import TRACE_HEADER, configure_logging, trace_scope
from webconsole.routes import router
from webconsole.security.classifier import CommandClassifier

logger = configure_logging()


def create_app(
    settings: Settings | None = None,
    classifier: CommandClassifier | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    classifier = classifier or CommandClassifier()

    app = FastAPI(title="Web Console", version=get_console_version())
    app.state.settings = settings
    app.state.classifier = classifier
    app.state.runner = build_runner(settings, classifier)
    if settings.demo_mode:
        logger.info("demo mode enabled, commands will not be executed")

    @app.middleware("http")
    async def trace_middleware(request: Request, call_next):
        with trace_scope(request.headers.get(TRACE_HEADER)) as trace_id:
            request.state.trace_id = trace_id
            logger.info("request %s %s", request.method, request.url.path)
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("unhandled error %s %s", request.method, request.url.path)
                response = error_response(request, 500, DEFAULT_INTERNAL_MESSAGE)

        response.headers[TRACE_HEADER] = trace_id
        return response

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("webconsole.main:app", host=load_settings().host, port=get_port())
