"""
API - HTTP surface.

- routes.py: /v1/photos and /v1/videos routers (one generic factory)
- health.py: /health and /metrics
- errors.py: exception handlers mapping errors to JSON responses
- schemas.py: pydantic response models
"""
