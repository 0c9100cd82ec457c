"""Configuration de logging basée sur structlog.

Objectif du module
------------------
- Logs lisibles en développement, JSON (une ligne par événement) ailleurs.
- Propager les champs liés à la requête (request_id) via les contextvars.
- Faire passer les loggers stdlib (gestionnaires d'erreurs, uvicorn, web3) par les mêmes
  processeurs, pour qu'un même flux contienne tous les événements.
"""

import logging
import sys
from typing import TextIO

import structlog

SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="ISO"),
    structlog.processors.StackInfoRenderer(),
]


def setup_logging(
    level: str | int = "INFO",
    json_logs: bool = False,
    stream: TextIO | None = None,
):
    """Configure structlog et le logging stdlib sur un handler commun.

    Les scripts passent `stream=sys.stderr` pour garder stdout au résultat.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    renderer = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*SHARED_PROCESSORS, structlog.stdlib.ExtraAdder()],
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
