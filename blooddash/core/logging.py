import logging
import sys
from pythonjsonlogger import jsonlogger
from blooddash.core.config import Settings

# third-party loggers that follow the app level
_FOLLOW_APP_LEVEL = ("uvicorn.access", "uvicorn.error", "blooddash")

# too chatty at INFO (SQL echo, websocket frames)
_QUIET = ("sqlalchemy.engine", "websockets", "passlib")


def configure_logging(settings: Settings) -> None:
    """
    JSON lines on stdout. Every record carries the service name, so trigger,
    auth and live-view logs can be told apart from uvicorn's when shipped
    to a shared sink.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
            static_fields={"service": settings.app_name},
        )
    )
    root.addHandler(handler)

    for name in _FOLLOW_APP_LEVEL:
        logging.getLogger(name).setLevel(level)
    for name in _QUIET:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
