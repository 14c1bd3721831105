"""FastAPI server setup and routes"""
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response, HTTPException
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from procfs_exporter.config import MetricsConfig, Settings
from procfs_exporter.metrics.registry import MetricsRegistry
from procfs_exporter.metrics.store import MetricsStore
from procfs_exporter.metrics.models import SAMPLING_ORDER
from procfs_exporter.app.sampler import SamplingLoop
from procfs_exporter.logging_config import get_logger
from procfs_exporter.middleware.security import RequestLoggingMiddleware, SecurityHeadersMiddleware


logger = get_logger(__name__)


class MetricsServer:
    """FastAPI server exposing the metrics store.

    Requests only ever read the store; sampling runs on the SamplingLoop
    thread, started and stopped with the application lifespan.
    """

    def __init__(self, settings: Settings, metrics_config: MetricsConfig,
                 registry: Optional[MetricsRegistry] = None, store: Optional[MetricsStore] = None):
        self.settings = settings
        self.metrics_config = metrics_config
        self.store = store or MetricsStore(metrics_config.enabled_kinds)
        self.registry = registry or MetricsRegistry(settings, metrics_config)
        self.sampler = SamplingLoop(self.registry, self.store, metrics_config.sampling_interval)

        # Dedicated registry so only the store is exposed
        self.prometheus_registry = CollectorRegistry(auto_describe=False)
        self.prometheus_registry.register(self.store)

        self.start_time = time.time()
        self.app = FastAPI(
            title="procfs metrics exporter",
            version=settings.service_version,
            docs_url=None,  # Disable docs for security
            redoc_url=None,  # Disable redoc for security
            openapi_url=None,  # Disable OpenAPI schema for security
            lifespan=self._lifespan
        )

        self._setup_middleware()
        self._setup_routes()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Run the sampling thread for the lifetime of the application"""
        self.start_time = time.time()
        logger.info(
            "Application startup initiated",
            service_name=self.settings.service_name,
            service_version=self.settings.service_version,
            sampling_interval=self.metrics_config.sampling_interval,
            enabled_metrics=self.registry.list_collectors(),
            event_type="server_startup"
        )
        self.sampler.start()
        try:
            yield
        finally:
            logger.info("Shutting down metrics exporter", event_type="server_shutdown")
            self.sampler.stop(timeout=1.0)
            self.registry.cleanup()

    def _setup_middleware(self):
        """Setup HTTP middleware"""
        # Add middleware in reverse order (last added is executed first)
        if self.settings.enable_request_logging:
            self.app.add_middleware(RequestLoggingMiddleware)
        self.app.add_middleware(SecurityHeadersMiddleware)

    def _collection_age(self) -> float:
        last = self.sampler.last_collection_time
        return time.time() - last if last > 0 else float('inf')

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get('/metrics', response_class=Response)
        def get_metrics():
            """Serve the latest sampled gauges in Prometheus format"""
            content = generate_latest(self.prometheus_registry)
            return Response(content, media_type=CONTENT_TYPE_LATEST)

        @self.app.get('/health')
        def health_check():
            """Health check endpoint"""
            age = self._collection_age()
            is_healthy = age < self.metrics_config.sampling_interval * 2

            health_data = {
                "status": "healthy" if is_healthy else "unhealthy",
                "last_collection_seconds_ago": round(age, 1) if age != float('inf') else None,
                "sampling_interval": self.metrics_config.sampling_interval,
                "total_collections": self.sampler.collection_count,
                "collection_errors": self.sampler.collection_errors,
                "sampler_running": self.sampler.is_running
            }

            if not is_healthy:
                raise HTTPException(status_code=503, detail=health_data)

            return health_data

        @self.app.get('/status')
        def get_status():
            """Detailed status information"""
            age = self._collection_age()
            count = self.sampler.collection_count

            return {
                "service": {
                    "name": self.settings.service_name,
                    "version": self.settings.service_version,
                    "uptime_seconds": round(time.time() - self.start_time, 1),
                    "hostname": os.uname().nodename
                },
                "collection": {
                    "interval_seconds": self.metrics_config.sampling_interval,
                    "last_collection_seconds_ago": round(age, 1) if age != float('inf') else None,
                    "total_collections": count,
                    "collection_errors": self.sampler.collection_errors,
                    "success_rate": round((count - self.sampler.collection_errors) / max(count, 1) * 100, 1)
                },
                "metrics": {
                    "enabled": [kind.value for kind in SAMPLING_ORDER if kind in self.store.enabled_kinds],
                    "ignored": self.metrics_config.ignored_metrics,
                    "published": [kind.value for kind in SAMPLING_ORDER if self.store.has_value(kind)]
                },
                "collectors": self.registry.get_collector_status()
            }

        @self.app.get('/', response_class=HTMLResponse)
        def index():
            """Web interface"""
            return self._generate_html_interface()

    def _generate_html_interface(self) -> str:
        """Generate HTML interface"""
        collectors_status = self.registry.get_collector_status()
        collector_items = ''.join(
            f'<li><strong>{name}:</strong> '
            f'<span class="{"status-enabled" if self.store.has_value(kind) else "status-disabled"}">'
            f'{"Published" if self.store.has_value(kind) else "Waiting"}</span> - {collectors_status[name]["help"]}</li>'
            for kind in SAMPLING_ORDER
            for name in [kind.value]
            if name in collectors_status
        )

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <title>procfs metrics exporter</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 40px; background-color: #f5f5f5; }}
                .container {{ max-width: 1200px; margin: 0 auto; background-color: white; padding: 20px; border-radius: 8px; }}
                .endpoint {{ margin: 10px 0; padding: 10px; background-color: #f8f9fa; border-radius: 4px; }}
                .section {{ background-color: #e9ecef; padding: 15px; border-radius: 4px; margin: 20px 0; }}
                .status-enabled {{ color: #28a745; }}
                .status-disabled {{ color: #dc3545; }}
            </style>
        </head>
        <body>
            <div class="container">
                <h1>procfs metrics exporter</h1>

                <h2>Available Endpoints:</h2>
                <div class="endpoint"><a href="/metrics">/metrics</a> - Prometheus metrics</div>
                <div class="endpoint"><a href="/health">/health</a> - Health check</div>
                <div class="endpoint"><a href="/status">/status</a> - Status information</div>

                <h2>Configuration:</h2>
                <div class="section">
                    <ul>
                        <li><strong>Sampling Interval:</strong> {self.metrics_config.sampling_interval} seconds</li>
                        <li><strong>Hostname:</strong> {os.uname().nodename}</li>
                    </ul>
                </div>

                <h2>Metrics:</h2>
                <div class="section">
                    <ul>
                        {collector_items}
                    </ul>
                </div>
            </div>
        </body>
        </html>
        """

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
