"""
Core - Application infrastructure and catalog services.

- config/      - Settings and factory functions
- interfaces/  - Protocols for DI
- connectors/  - Cache and record store implementations
- catalog/     - Query and ingestion services
- storage/     - Blob storage for uploaded files
- monitoring/  - Prometheus metrics
"""
