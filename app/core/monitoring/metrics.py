"""
Catalog metrics collection using Prometheus.

Tracks:
- Cache hit/miss rate per asset kind and query shape
- Cache bypasses (cache backend unavailable)
- Uploads by outcome
- Record store query latency
"""

from prometheus_client import Counter, Histogram
import time
from functools import wraps
from typing import Callable, Any

# =============================================================================
# Cache Metrics
# =============================================================================

cache_requests_total = Counter(
    'catalog_cache_requests_total',
    'Cache lookups by result',
    ['kind', 'query', 'result']  # query: by_id, tags, listing; result: hit, miss
)

cache_bypass_total = Counter(
    'catalog_cache_bypass_total',
    'Cache calls skipped because the cache backend was unavailable',
    ['operation']  # get, set, delete
)

# =============================================================================
# Ingestion Metrics
# =============================================================================

uploads_total = Counter(
    'catalog_uploads_total',
    'Upload attempts by outcome',
    ['kind', 'status']  # status: created, rejected
)

soft_deletes_total = Counter(
    'catalog_soft_deletes_total',
    'Soft-deleted assets',
    ['kind']
)

# =============================================================================
# Store Metrics
# =============================================================================

store_query_seconds = Histogram(
    'catalog_store_query_seconds',
    'Record store call duration in seconds',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5]
)


blob_io_seconds = Histogram(
    'catalog_blob_io_seconds',
    'Blob store write/remove duration in seconds',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5]
)


# =============================================================================
# Decorators for Automatic Metrics
# =============================================================================

def track_duration(metric: Histogram, labels: dict = None):
    """
    Decorator to track coroutine execution duration.

    Usage:
        @track_duration(blob_io_seconds, {'operation': 'save'})
        async def save(self, filename, content):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                duration = time.perf_counter() - start_time
                if labels:
                    metric.labels(**labels).observe(duration)
                else:
                    metric.observe(duration)
        return wrapper
    return decorator


# =============================================================================
# Helper Functions
# =============================================================================

def record_cache_hit(kind: str, query: str):
    """Record a cache hit."""
    cache_requests_total.labels(kind=kind, query=query, result='hit').inc()


def record_cache_miss(kind: str, query: str):
    """Record a cache miss."""
    cache_requests_total.labels(kind=kind, query=query, result='miss').inc()


def record_cache_bypass(operation: str):
    """Record a cache call skipped due to backend unavailability."""
    cache_bypass_total.labels(operation=operation).inc()
