"""Custom exceptions for LawCast

This module defines the exception hierarchy:
- Base exception for all LawCast errors
- Source, delivery, cache and registry errors

Propagation rules:
- DeliveryError never leaves the fan-out engine; it is converted into a
  DeliveryResult.
- FetchError is soft during scheduled polls and hard during startup.
- CacheStateError is never raised by diffing; an uninitialized cache
  reports no new notices instead.
"""

from typing import Optional


class LawCastError(Exception):
    """Base exception for all LawCast errors"""

    pass


class FetchError(LawCastError):
    """Fetching notices from the source failed

    Raised when:
    - HTTP request fails (non-2xx status)
    - Network timeout or connection errors
    - Response body is not the expected JSON shape
    - All retry attempts exhausted
    """

    pass


class DeliveryError(LawCastError):
    """A webhook delivery attempt failed

    Carries the HTTP status of the failed attempt when the endpoint
    answered at all. A missing status always classifies as transient.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CacheStateError(LawCastError):
    """Cache operation attempted in an invalid lifecycle state"""

    pass


class RegistryError(LawCastError):
    """Base for destination registry errors"""

    pass


class DuplicateDestinationError(RegistryError):
    """A destination with the same URL is already registered"""

    pass


class DestinationNotFoundError(RegistryError):
    """No destination with the requested id"""

    pass


class InvalidWebhookUrlError(LawCastError):
    """Webhook URL is malformed or failed its registration probe"""

    pass
