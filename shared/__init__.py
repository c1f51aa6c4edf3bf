"""
Shared utilities for the Ripley delivery-commitment checker.

This package is intentionally small and focused. It currently provides:

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging

The `checker` package should treat `shared/` as read-only infrastructure
code and avoid introducing workflow-specific coupling here.
"""
