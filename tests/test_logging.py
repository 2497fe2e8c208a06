"""Tests for logging configuration"""
import os
import logging
from unittest.mock import patch

from config import Config
from logging_config import (
    setup_structured_logging,
    get_logger,
    log_scrape_cycle,
    log_server_startup,
    log_error
)


class TestLoggingConfig:
    """Test logging configuration and structured logging"""

    def test_setup_structured_logging(self, config_env, tmp_path):
        """Test structured logging setup"""
        log_file = tmp_path / "logs" / "test.log"

        with patch.dict(os.environ, {"LOG_FILE": str(log_file), "LOG_LEVEL": "DEBUG"}):
            config = Config()

        setup_structured_logging(config)

        assert log_file.parent.exists()
        logger = logging.getLogger("test")
        assert logger.isEnabledFor(logging.DEBUG)

    def test_get_logger(self):
        """Test getting structured logger"""
        logger = get_logger("test_logger")

        assert logger is not None
        assert hasattr(logger, 'info')
        assert hasattr(logger, 'error')
        assert hasattr(logger, 'debug')
        assert hasattr(logger, 'warning')

    def test_log_scrape_cycle(self):
        """Test structured scrape cycle logging"""
        logger = get_logger("test")

        # This should not raise an exception
        log_scrape_cycle(logger, collections_count=5, duration=0.25, failed=False)
        log_scrape_cycle(logger, collections_count=5, duration=1.2, failed=True)

    def test_log_server_startup(self, config_env):
        """Test structured server startup logging"""
        logger = get_logger("test")

        log_server_startup(logger, Config())

    def test_log_error(self):
        """Test structured error logging"""
        logger = get_logger("test")
        error = ValueError("Test error")

        try:
            raise error
        except ValueError:
            log_error(logger, error, {"component": "test", "collection": "buffers"})
            log_error(logger, error)

    def test_development_vs_production_logging(self, config_env, tmp_path):
        """Test different logging configurations for development vs production"""
        with patch.dict(os.environ, {"LOG_FILE": str(tmp_path / "test.log")}):
            config = Config()

        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            setup_structured_logging(config)
            get_logger("test").info("Test development log")

        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            setup_structured_logging(config)
            get_logger("test").info("Test production log")

    def test_logger_context_binding(self):
        """Test logger context binding"""
        logger = get_logger("test")

        bound_logger = logger.bind(collection="tables", scrape=1)
        bound_logger.info("Test message with context")
