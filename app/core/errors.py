"""
Custom error classes with structured logging and error propagation.

All errors carry an HTTP status code, structured data and the request
correlation ID. The API layer renders them through app.api.errors.
"""

from typing import Optional, Dict, Any
from app.common.logging import get_logger
from app.common.logging.correlation import get_correlation_id

logger = get_logger(__name__)


class CatalogError(Exception):
    """
    Base error class for all application errors.

    Automatically logs errors with correlation context when raised.
    """

    status_code: int = 500
    log_level: str = "error"

    def __init__(
        self,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """
        Initialize error with structured context.

        Args:
            message: Human-readable error message (returned to the caller)
            data: Structured data for observability
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.data = data or {}
        self.cause = cause
        self.correlation_id = get_correlation_id()

        self._log_error()

    def _log_error(self):
        """Log error with structured data."""
        log_data = {
            "error_type": self.__class__.__name__,
            "correlation_id": self.correlation_id,
            **self.data,
        }

        if self.cause:
            log_data["cause"] = str(self.cause)

        if self.log_level == "warning":
            logger.warning(self.message, data=log_data)
        else:
            logger.error(self.message, data=log_data, exc_info=self.cause is not None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "data": self.data,
            "correlation_id": self.correlation_id,
            "cause": str(self.cause) if self.cause else None,
        }


# Request errors (client side, not retried)
class ValidationError(CatalogError):
    """Malformed id, tag query or upload payload."""
    status_code = 400
    log_level = "warning"


class NotFoundError(CatalogError):
    """No record with the requested id."""
    status_code = 404
    log_level = "warning"


class CapacityError(CatalogError):
    """Store already holds the maximum number of assets of this kind."""
    status_code = 400
    log_level = "warning"


class ConflictError(CatalogError):
    """Caller-supplied id already exists."""
    status_code = 400
    log_level = "warning"


# Infrastructure errors
class InfrastructureError(CatalogError):
    """Backing service unreachable or failing."""
    status_code = 500


class CacheUnavailableError(InfrastructureError):
    """Cache backend unreachable. Recovered locally by bypassing the cache."""
    log_level = "warning"


class StoreUnavailableError(InfrastructureError):
    """Record store unreachable or failing."""
    pass


# Configuration errors
class ConfigurationError(CatalogError):
    """Error in configuration."""
    pass
