"""Response models for the HTTP API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class AssetResponse(BaseModel):
    """Single asset (photo or video)."""
    id: str
    url: str
    tags: List[str]
    title: str
    createdAt: str
    updatedAt: str
    deletedAt: Optional[str] = None


class TagSearchResponse(BaseModel):
    """Any-of tag search result."""
    items: List[AssetResponse]
    totalCount: int
    totalPages: int
    currentPage: Optional[int] = None


class ErrorResponse(BaseModel):
    error: str


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    uptime_seconds: float
    version: str
    memory: Dict[str, Any]
    disk: Dict[str, Any]
    cache: Dict[str, Any]
