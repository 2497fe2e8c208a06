"""PostgreSQL statistics collections"""
from .base import BaseCollection, cache_hit_ratio
from .buffers import BufferCollection
from .database import DatabaseCollection
from .tables import TableCollection, TableSet, ALL_TABLES
from .slow_queries import SlowQueryCollection
from .custom_query import CustomQueryCollection

__all__ = [
    'BaseCollection',
    'cache_hit_ratio',
    'BufferCollection',
    'DatabaseCollection',
    'TableCollection',
    'TableSet',
    'ALL_TABLES',
    'SlowQueryCollection',
    'CustomQueryCollection'
]
