"""Delivery result models for notification fan-out.

Every delivery attempt ends in exactly one ``DeliveryOutcome``:

- DELIVERED: the endpoint accepted the message
- TRANSIENT: failed, but a later attempt may succeed (5xx, 429, timeouts)
- PERMANENT: the endpoint is gone or revoked (401, 403, 404)

Usage:
    from lawcast.models.delivery import DeliveryOutcome, DeliveryResult

    result = DeliveryResult(destination_id=1, outcome=DeliveryOutcome.DELIVERED)
    if result.should_deactivate:
        ...
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class DeliveryOutcome(str, Enum):
    """Tagged outcome of a single delivery attempt."""

    DELIVERED = "delivered"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class DeliveryResult(BaseModel):
    """Result of delivering one notice (or probe) to one destination.

    Attributes:
        destination_id: Destination the attempt targeted (None for a bare URL probe).
        notice_num: Notice that was delivered (None for probes).
        outcome: Classified outcome of the attempt.
        status_code: HTTP status returned by the endpoint, if any.
        error: Error message if the attempt failed.
    """

    destination_id: Optional[int] = Field(default=None)
    notice_num: Optional[int] = Field(default=None)
    outcome: DeliveryOutcome
    status_code: Optional[int] = Field(default=None)
    error: Optional[str] = Field(default=None)

    @property
    def success(self) -> bool:
        return self.outcome == DeliveryOutcome.DELIVERED

    @property
    def should_deactivate(self) -> bool:
        return self.outcome == DeliveryOutcome.PERMANENT


# Probes share the same shape; notice_num is always None.
ProbeResult = DeliveryResult
