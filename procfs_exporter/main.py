#!/usr/bin/env python3
"""Command-line entry point and application factory"""
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI

from procfs_exporter.config import Settings, load_metrics_config
from procfs_exporter.app.server import MetricsServer
from procfs_exporter.logging_config import setup_structured_logging, get_logger, log_server_startup, log_error


def build_server(settings: Optional[Settings] = None) -> MetricsServer:
    """Load the metric selection named by the settings and build the server"""
    settings = settings or Settings()
    metrics_config = load_metrics_config(settings.config_file)
    log_server_startup(get_logger(__name__), settings, metrics_config)
    return MetricsServer(settings, metrics_config)


def create_app() -> FastAPI:
    """Application factory for ``uvicorn --factory procfs_exporter.main:create_app``"""
    settings = Settings()
    setup_structured_logging(settings)
    return build_server(settings).get_app()


def main():
    """Configure logging, build the server and serve until interrupted"""
    try:
        settings = Settings()
        setup_structured_logging(settings)
        server = build_server(settings)

        uvicorn.run(
            server.get_app(),
            host=settings.metrics_host,
            port=settings.metrics_port,
            log_config=None  # structlog owns the handlers
        )
    except Exception as e:
        log_error(get_logger(__name__), e, {"component": "main", "phase": "startup"})
        sys.exit(1)


if __name__ == '__main__':
    main()
