import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from blooddash.api.v1.common import fail
from blooddash.api.v1.router import v1_router
from blooddash.core.config import get_settings
from blooddash.core.errors import ActionError
from blooddash.core.logging import configure_logging
from blooddash.core.middleware import RequestIdMiddleware

logger = logging.getLogger(__name__)


async def action_error_handler(request: Request, exc: ActionError) -> JSONResponse:
    logger.info(
        "action failed",
        extra={
            "path": request.url.path,
            "status": exc.status_code,
            "error": exc.message,
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    return JSONResponse(status_code=exc.status_code, content=fail(exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=fail(message))


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
    )

    # Middleware: Request ID
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    app.add_exception_handler(ActionError, action_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # API v1
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
