"""
Common - Shared utilities.

- logging/     - Structured logging configuration and request correlation
"""
