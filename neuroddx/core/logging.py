import sys
import structlog
import logging
from neuroddx.core.config import settings

def setup_logging():
    """
    Configures structlog to output JSON in Production and
    colored strings in Development.
    """

    # Shared processors (add timestamp, log level, callsite)
    shared_processors = [
        structlog.contextvars.merge_contextvars, # Allows binding request_id globally
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
    ]

    if settings.ENVIRONMENT == "production":
        # PROD: Flat JSON for log shipping
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # DEV: Human readable
        processors = shared_processors + [
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ]

    # Engine traces (per-rule scores) are only interesting while tuning weights
    level = logging.DEBUG if settings.DEBUG else logging.INFO

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    # Intercept standard library logging (e.g. Uvicorn logs)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    def handle_exception(exc_type, exc_value, exc_traceback):
        """
        Global exception handler to ensure crashes are logged through structlog
        """
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        root_logger = structlog.get_logger()
        root_logger.critical(
            "uncaught_exception",
            exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = handle_exception
