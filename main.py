#!/usr/bin/env python3
"""Main entry point for the PostgreSQL metrics exporter"""
import sys
from typing import List
import uvicorn
from config import Config
from app.server import MetricsServer
from collectors import (
    BufferCollection,
    DatabaseCollection,
    TableCollection,
    SlowQueryCollection,
    CustomQueryCollection,
)
from metrics.custom_queries import CustomQueryDefinition, load_custom_queries
from metrics.orchestrator import ScrapeOrchestrator
from utils.postgres import PostgresDataSource
from logging_config import setup_structured_logging, get_logger, log_server_startup, log_error


def build_orchestrator(config: Config, source, custom_queries: List[CustomQueryDefinition]) -> ScrapeOrchestrator:
    """Wire the collections in their fixed scrape order"""
    namespace = config.namespace
    collections = [
        BufferCollection(namespace=namespace),
        DatabaseCollection(config.databases, namespace=namespace),
        TableCollection(config.tables, schema=config.table_schema, namespace=namespace),
        SlowQueryCollection(config.slow_query_threshold, namespace=namespace),
    ]
    if custom_queries:
        collections.append(CustomQueryCollection(custom_queries, namespace=namespace))
    return ScrapeOrchestrator(source, collections, namespace=namespace)


def main():
    """Main application entry point"""
    data_source = None
    try:
        config = Config()

        setup_structured_logging(config)
        logger = get_logger(__name__)
        log_server_startup(logger, config)

        custom_queries = load_custom_queries(config.queries_path)

        data_source = PostgresDataSource(
            config.data_source_name,
            max_connections=config.db_max_connections,
            connect_timeout=config.db_connect_timeout,
        )
        data_source.open()
        data_source.check()

        orchestrator = build_orchestrator(config, data_source, custom_queries)
        server = MetricsServer(config, orchestrator, data_source)

        uvicorn.run(
            server.get_app(),
            host=config.metrics_host,
            port=config.metrics_port,
            log_config=None  # We handle logging ourselves
        )

    except Exception as e:
        logger = get_logger(__name__)
        log_error(logger, e, {"component": "main", "phase": "startup"})
        if data_source is not None:
            data_source.close()
        sys.exit(1)


if __name__ == '__main__':
    main()
