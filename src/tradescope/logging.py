"""structlog setup for the analysis pipeline and the snapshot CLI."""

import logging
import os
import sys
import uuid

import structlog


def setup_logging(log_level: str = "INFO") -> None:
    """Route structlog events through a stdlib handler on stderr.

    LOG_FORMAT selects the renderer: "json" for machine-readable lines,
    anything else for the coloured console renderer. Output goes to stderr
    so the CLI can keep stdout for the analysis JSON.
    """
    renderer: structlog.types.Processor
    if os.environ.get("LOG_FORMAT", "console").lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def bind_cycle(symbol: str) -> str:
    """Bind a fresh cycle id and the symbol to the logging context.

    Every event logged until the next call carries both keys, so the
    events of one analysis cycle can be grouped. Returns the cycle id.
    """
    cycle_id = uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(cycle_id=cycle_id, symbol=symbol)
    return cycle_id


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
