"""
Shared utilities for the Convert Gateway.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application shell (middleware, health, handlers)
- test_helpers: Factories for tests (configs, signed ID tokens)

Do not import from service packages into shared/.
"""
