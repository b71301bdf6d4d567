from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, merge_contextvars
from structlog.stdlib import ProcessorFormatter

# Loggers that flood the console with HTTP and token traffic at INFO.
_QUIET_LOGGERS = (
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "msal",
    "urllib3",
)


def _shared_processors() -> list[Any]:
    return [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="@timestamp"),
    ]


class LoggerFactory:
    _instance: LoggerFactory | None = None
    _configured: bool = False

    def __new__(cls) -> LoggerFactory:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def configure(
        self,
        level: str = "INFO",
        fmt: str = "text",
        log_file: Path | str | None = None,
        max_bytes: int | None = None,
        retention: int = 5,
        context: dict[str, Any] | None = None,
        force: bool = False,
    ) -> None:
        if LoggerFactory._configured and not force:
            return

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *_shared_processors(),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        renderer = (
            structlog.processors.JSONRenderer()
            if fmt == "json"
            else structlog.dev.ConsoleRenderer(colors=False)
        )
        formatter = ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[*_shared_processors(), structlog.stdlib.ExtraAdder()],
        )

        handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        if log_file:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    path, maxBytes=max_bytes or 0, backupCount=retention, encoding="utf-8"
                )
            )

        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(getattr(logging, level.upper(), logging.INFO))
        for handler in handlers:
            handler.setFormatter(formatter)
            root.addHandler(handler)

        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        if context:
            bind_contextvars(**context)

        LoggerFactory._configured = True


_factory = LoggerFactory()


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_file: Path | str | None = None,
    max_bytes: int | None = None,
    retention: int = 5,
    context: dict[str, Any] | None = None,
    force: bool = False,
) -> None:
    _factory.configure(
        level=level,
        fmt=fmt,
        log_file=log_file,
        max_bytes=max_bytes,
        retention=retention,
        context=context,
        force=force,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = [
    "configure_logging",
    "get_logger",
    "LoggerFactory",
]
