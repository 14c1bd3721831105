"""Structured logging configuration for the procfs metrics exporter"""
import logging
import sys
from typing import Any, Dict, List, TYPE_CHECKING

import structlog
from structlog.stdlib import LoggerFactory
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, StackInfoRenderer

if TYPE_CHECKING:
    from procfs_exporter.config import MetricsConfig, Settings
    from procfs_exporter.metrics.models import AllocatorRun


# Third-party loggers that only produce per-request noise
QUIET_LOGGERS = ("uvicorn.access", "fastapi")


def _build_handlers(settings: "Settings", level: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(settings.log_file)))

    for handler in handlers:
        handler.setLevel(level)
    return handlers


def setup_structured_logging(settings: "Settings") -> None:
    """Route structlog through stdlib logging.

    Events render as JSON unless ``settings.environment`` is
    ``development``, which switches to the colourised console renderer.
    Output goes to stdout and, when configured, to ``settings.log_file``.
    """
    renderer = ConsoleRenderer() if settings.is_development else JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            TimeStamper(fmt="iso"),
            StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper())
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=_build_handlers(settings, level),
        force=True
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)


def log_metrics_collection(logger: structlog.stdlib.BoundLogger, metrics_count: int, collection_time: float, errors: int = 0) -> None:
    """Log a finished sampling tick with structured data"""
    logger.info(
        "Metrics collection completed",
        metrics_count=metrics_count,
        collection_time_seconds=round(collection_time, 3),
        errors=errors,
        event_type="metrics_collection"
    )


def log_collector_unavailable(logger: structlog.stdlib.BoundLogger, collector: str, errors: List[str]) -> None:
    """Log a metric group skipped because its source could not be read"""
    logger.warning(
        "Metric source unavailable, keeping previous values",
        collector=collector,
        errors=errors,
        event_type="collection_unavailable"
    )


def log_allocator_run(logger: structlog.stdlib.BoundLogger, policy: str, record: "AllocatorRun", run_time: float) -> None:
    """Log a completed allocator benchmark run"""
    logger.debug(
        "Allocator benchmark completed",
        policy=policy,
        reported_policy=record.policy,
        iterations=record.iterations,
        run_time_seconds=round(run_time, 3),
        event_type="allocator_run"
    )


def log_server_startup(logger: structlog.stdlib.BoundLogger, settings: "Settings", metrics_config: "MetricsConfig") -> None:
    """Log server startup with configuration details"""
    logger.info(
        "Server starting up",
        service_name=settings.service_name,
        service_version=settings.service_version,
        environment=settings.environment,
        sampling_interval=metrics_config.sampling_interval,
        enabled_metrics=sorted(kind.value for kind in metrics_config.enabled_kinds),
        ignored_metrics=metrics_config.ignored_metrics,
        metrics_host=settings.metrics_host,
        metrics_port=settings.metrics_port,
        event_type="server_startup"
    )


def log_error(logger: structlog.stdlib.BoundLogger, error: Exception, context: Dict[str, Any] = None) -> None:
    """Log error with structured context"""
    logger.error(
        "Error occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context or {},
        event_type="error",
        exc_info=True
    )
