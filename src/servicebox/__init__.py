"""Minimal service container.

This package provides a small service container for Python: services are
registered under string ids as initiators that receive the container and
pull their own dependencies from it.

Exports:
- `Container`: registry supporting registration, tagging, decoration and resolution.
- `Lifetime`: Enum choosing between a cached (singleton) or fresh (factory) result.
- `ServiceAlreadyDefined`: Raised when an id is registered twice.
- `ServiceNotFound`: Raised for unknown ids, and for ids whose resolution is
  already in progress (circular dependencies).
- `service_id`: Conventional id for a service keyed by its class.
"""

from ._container import (
    Container,
    ContainerError,
    Lifetime,
    ServiceAlreadyDefined,
    ServiceNotFound,
    service_id,
)


__all__ = [
    "Container",
    "ContainerError",
    "Lifetime",
    "ServiceAlreadyDefined",
    "ServiceNotFound",
    "service_id",
]
