"""
orm_repository.observability.logging

structlog setup for hosts embedding the repositories.

Repository modules only call `get_logger`; their events (`context.migrated`,
`repository.query`, `repository.commit`, `repository.stage_skipped`) render
through whatever the host configured. `configure_logging` is the JSON setup
used by the test suite and by hosts without their own.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(*, service_name: str, level: str) -> None:
    """
    Route structlog through stdlib logging and render one JSON object per
    line on stdout, tagged with `service`. Calling it again replaces the
    previous setup.
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            # Drop below-threshold events before any rendering work.
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _tag_service(service_name),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _tag_service(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Context bound with `structlog.contextvars` also shows up on events logged from
# the `*_async` worker threads; `orm_repository.repository` copies the context over.
