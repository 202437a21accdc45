"""Tests for the exception hierarchy."""

from lawcast.utils.exceptions import (
    CacheStateError,
    DeliveryError,
    DestinationNotFoundError,
    DuplicateDestinationError,
    FetchError,
    InvalidWebhookUrlError,
    LawCastError,
    RegistryError,
)


class TestExceptionHierarchy:
    """All errors share LawCastError as the root."""

    def test_all_inherit_from_base(self):
        for exc in (
            FetchError,
            DeliveryError,
            CacheStateError,
            RegistryError,
            InvalidWebhookUrlError,
        ):
            assert issubclass(exc, LawCastError)

    def test_registry_errors(self):
        assert issubclass(DuplicateDestinationError, RegistryError)
        assert issubclass(DestinationNotFoundError, RegistryError)

    def test_delivery_error_carries_status(self):
        err = DeliveryError("HTTP 404: Unknown Webhook", status_code=404)

        assert err.status_code == 404
        assert "404" in str(err)

    def test_delivery_error_status_optional(self):
        assert DeliveryError("timeout").status_code is None
