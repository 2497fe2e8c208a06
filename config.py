"""Configuration for the PostgreSQL metrics exporter"""
from pathlib import Path
from typing import List, Optional, Literal
from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Environment based settings with Pydantic validation"""

    # Database
    data_source_name: str = Field(..., description="PostgreSQL connection string (required)")
    databases_str: str = Field(..., description="Monitored databases (comma-separated, required)")
    tables_str: str = Field(default="*", description="Monitored tables (comma-separated, '*' for all)")
    table_schema: str = Field(default="public", description="Schema of the monitored tables")
    slow_query_threshold: float = Field(default=5.0, gt=0, description="Seconds after which an active query is slow")
    queries_path: Optional[Path] = Field(default=None, description="YAML file with custom queries")
    namespace: str = Field(default="postgresql", description="Metric name prefix")

    # Connection pool, fixed at startup
    db_max_connections: int = Field(default=2, ge=1, le=10, description="Maximum open database connections")
    db_connect_timeout: float = Field(default=10.0, gt=0, description="Connection timeout in seconds")

    # Server settings
    metrics_port: int = Field(default=9104, ge=1, le=65535, description="Metrics server port")
    metrics_host: str = Field(default="0.0.0.0", description="Metrics server host")
    metrics_path: str = Field(default="/metrics", description="Path under which to expose metrics")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Path = Field(default=Path("/opt/metrics-exporters/postgresql/logs/app.log"), description="Log file path")

    # Service settings
    service_name: str = Field(default="postgresql-exporter", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")
    enable_request_logging: bool = Field(default=True, description="Enable HTTP request logging")

    class Config:
        env_prefix = ""
        case_sensitive = False

    @validator('data_source_name')
    def validate_data_source_name(cls, v):
        if not v or not v.strip():
            raise ValueError("DATA_SOURCE_NAME is required")
        return v.strip()

    @validator('databases_str')
    def validate_databases(cls, v):
        if not [item for item in v.split(',') if item.strip()]:
            raise ValueError("DATABASES_STR must name at least one database")
        return v

    @validator('metrics_path')
    def validate_metrics_path(cls, v):
        if not v.startswith('/'):
            raise ValueError("METRICS_PATH must start with '/'")
        return v

    @validator('log_level', pre=True)
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @validator('log_file')
    def ensure_log_directory(cls, v):
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def databases(self) -> List[str]:
        """Monitored databases as a list"""
        return [item.strip() for item in self.databases_str.split(',') if item.strip()]

    @property
    def tables(self) -> List[str]:
        """Monitored tables as a list, ['*'] when every table is monitored"""
        return [item.strip() for item in self.tables_str.split(',') if item.strip()] or ["*"]

    def is_all_tables(self) -> bool:
        return self.tables == ["*"]
