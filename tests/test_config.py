"""Tests for configuration module"""
import os
from pathlib import Path
from unittest.mock import patch
import pytest
from pydantic import ValidationError

from config import Config


class TestConfig:
    """Test configuration validation and parsing"""

    def test_default_config(self, config_env):
        """Test default configuration values"""
        config = Config()

        assert config.data_source_name == "postgresql://exporter@localhost:5432/postgres"
        assert config.databases == ["app", "analytics"]
        assert config.tables == ["*"]
        assert config.is_all_tables() is True
        assert config.table_schema == "public"
        assert config.slow_query_threshold == 5.0
        assert config.queries_path is None
        assert config.namespace == "postgresql"
        assert config.metrics_port == 9104
        assert config.metrics_path == "/metrics"
        assert config.db_max_connections == 2
        assert config.log_level == "INFO"

    def test_environment_override(self, config_env):
        """Test configuration override from environment variables"""
        env_vars = {
            "TABLES_STR": "users, orders",
            "TABLE_SCHEMA": "billing",
            "SLOW_QUERY_THRESHOLD": "2.5",
            "QUERIES_PATH": "/etc/exporter/queries.yml",
            "METRICS_PORT": "9187",
            "METRICS_PATH": "/pg",
            "DB_MAX_CONNECTIONS": "4",
            "LOG_LEVEL": "debug",
        }

        with patch.dict(os.environ, env_vars):
            config = Config()

            assert config.tables == ["users", "orders"]
            assert config.is_all_tables() is False
            assert config.table_schema == "billing"
            assert config.slow_query_threshold == 2.5
            assert config.queries_path == Path("/etc/exporter/queries.yml")
            assert config.metrics_port == 9187
            assert config.metrics_path == "/pg"
            assert config.db_max_connections == 4
            assert config.log_level == "DEBUG"

    def test_data_source_name_required(self, tmp_path):
        """Missing connection string is a validation error"""
        env_vars = {"DATABASES_STR": "app", "LOG_FILE": str(tmp_path / "app.log")}

        with patch.dict(os.environ, env_vars, clear=True):
            with pytest.raises(ValidationError):
                Config()

    def test_empty_data_source_name_rejected(self, config_env):
        with patch.dict(os.environ, {"DATA_SOURCE_NAME": "  "}):
            with pytest.raises(ValidationError):
                Config()

    def test_databases_required(self, config_env):
        with patch.dict(os.environ, {"DATABASES_STR": " , "}):
            with pytest.raises(ValidationError):
                Config()

    def test_databases_parsing(self, config_env):
        with patch.dict(os.environ, {"DATABASES_STR": "app, analytics ,,reports"}):
            config = Config()

            assert config.databases == ["app", "analytics", "reports"]

    def test_validation_slow_query_threshold(self, config_env):
        with patch.dict(os.environ, {"SLOW_QUERY_THRESHOLD": "0"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_metrics_port(self, config_env):
        with patch.dict(os.environ, {"METRICS_PORT": "0"}):
            with pytest.raises(ValidationError):
                Config()

        with patch.dict(os.environ, {"METRICS_PORT": "70000"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_metrics_path(self, config_env):
        with patch.dict(os.environ, {"METRICS_PATH": "metrics"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_max_connections(self, config_env):
        with patch.dict(os.environ, {"DB_MAX_CONNECTIONS": "50"}):
            with pytest.raises(ValidationError):
                Config()

    def test_empty_tables_means_all(self, config_env):
        with patch.dict(os.environ, {"TABLES_STR": ""}):
            assert Config().tables == ["*"]

    def test_directory_creation(self, config_env, tmp_path):
        """Test that parent directories are created for the log file"""
        log_file = tmp_path / "subdir" / "test.log"

        with patch.dict(os.environ, {"LOG_FILE": str(log_file)}):
            config = Config()

            assert config.log_file.parent.exists()
