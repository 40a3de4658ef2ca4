"""Monitoring and metrics collection."""

from .metrics import (
    # Decorators
    track_duration,

    # Helper functions
    record_cache_hit,
    record_cache_miss,
    record_cache_bypass,

    # Metrics
    cache_requests_total,
    cache_bypass_total,
    uploads_total,
    soft_deletes_total,
    store_query_seconds,
    blob_io_seconds,
)

__all__ = [
    'track_duration',
    'record_cache_hit',
    'record_cache_miss',
    'record_cache_bypass',
    'cache_requests_total',
    'cache_bypass_total',
    'uploads_total',
    'soft_deletes_total',
    'store_query_seconds',
    'blob_io_seconds',
]
