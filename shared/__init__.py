"""
Shared utilities for the Zest Access services.

This package aggregates common building blocks consumed by all services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding (health, metrics, handlers)

Do not import from service_* packages into shared/.
"""
