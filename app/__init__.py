"""
Media Catalog - asset catalog service.

Clean Architecture structure:
- core/      - Application core (config, interfaces, connectors, catalog services)
- common/    - Shared utilities (logging)
- api/       - HTTP routers and exception handlers
"""

__version__ = "1.0.0"
