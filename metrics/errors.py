"""Exporter error taxonomy"""
from typing import Optional


class ExporterError(Exception):
    """Base class for all exporter errors"""


class ConfigurationError(ExporterError):
    """Invalid configuration detected at load time; never retried"""


class QueryError(ExporterError):
    """A statistics query failed; aborts the current scrape cycle only"""

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection

    def __str__(self) -> str:
        message = super().__str__()
        if self.collection:
            return f"{self.collection}: {message}"
        return message


class SchemaMismatchError(QueryError):
    """A custom query returned rows whose shape differs from its derived shape"""
