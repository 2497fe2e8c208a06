"""FastAPI server setup and routes"""
import os
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Response, HTTPException, Request
from fastapi.responses import HTMLResponse
from config import Config
from metrics.orchestrator import ScrapeOrchestrator
from metrics.exporters.prometheus import PrometheusExporter
from logging_config import get_logger


logger = get_logger(__name__)


class MetricsServer:
    """FastAPI server exposing the PostgreSQL metrics"""

    def __init__(self, config: Config, orchestrator: ScrapeOrchestrator, data_source=None):
        self.config = config
        self.orchestrator = orchestrator
        self.data_source = data_source
        self.exporter = PrometheusExporter(orchestrator)
        self.app = FastAPI(
            title="PostgreSQL Exporter",
            version=config.service_version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=self._lifespan
        )
        self.app.state.start_time = time.time()

        self._setup_middleware()
        self._setup_routes()

    def _setup_middleware(self):
        """Setup request logging middleware"""
        if not self.config.enable_request_logging:
            return

        @self.app.middleware("http")
        async def log_requests(request: Request, call_next):
            start_time = time.time()
            response = await call_next(request)
            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_seconds=round(time.time() - start_time, 3),
                client_ip=request.client.host if request.client else None,
                event_type="http_request"
            )
            return response

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get(self.config.metrics_path, response_class=Response)
        def get_metrics():
            """Scrape the database and serve metrics in Prometheus format"""
            content = self.exporter.render()
            return Response(content, media_type=self.exporter.content_type)

        @self.app.get('/health')
        def health_check():
            """Health check endpoint, unhealthy when the last scrape failed"""
            result = self.orchestrator.last_result
            health_data = {
                "status": "unhealthy" if result.failed else "healthy",
                "total_scrapes": self.orchestrator.total_scrapes,
                "failed_scrapes": self.orchestrator.total_failures,
                "last_scrape_error": result.error,
            }

            if result.failed:
                raise HTTPException(status_code=503, detail=health_data)

            return health_data

        @self.app.get('/status')
        def get_status():
            """Detailed status information"""
            return {
                "service": {
                    "name": self.config.service_name,
                    "version": self.config.service_version,
                    "uptime_seconds": round(time.time() - self.app.state.start_time, 1),
                    "hostname": os.uname().nodename
                },
                "scrape": self.orchestrator.status(),
                "config": {
                    "databases": self.config.databases,
                    "tables": self.config.tables,
                    "table_schema": self.config.table_schema,
                    "slow_query_threshold_seconds": self.config.slow_query_threshold,
                    "metrics_path": self.config.metrics_path,
                }
            }

        @self.app.get('/', response_class=HTMLResponse)
        def index():
            """Landing page"""
            return self._generate_html_interface()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Close the data source on shutdown"""
        yield
        logger.info("Shutting down PostgreSQL exporter", event_type="server_shutdown")
        if self.data_source is not None:
            self.data_source.close()

    def _generate_html_interface(self) -> str:
        path = self.config.metrics_path
        return f"""<html>
<head><title>PostgreSQL exporter</title></head>
<body>
<h1>PostgreSQL exporter</h1>
<p><a href='{path}'>Metrics</a></p>
<p><a href='/health'>Health</a> | <a href='/status'>Status</a></p>
</body>
</html>
"""

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
