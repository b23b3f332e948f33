"""
Gateway confirmation events.

The gateway delivers JSON events of the shape

    {"id": "evt_...", "type": "checkout.session.completed",
     "data": {"object": {"id": "cs_...", "payment_status": "paid",
                         "amount_total": 20000,
                         "metadata": {"reservation_id": "..."}}}}

Only the fields the reconciler needs are kept.  Event types form a closed
set; anything else maps to EventKind.UNRECOGNIZED and is acknowledged
without effect, so new gateway event types never break delivery.
"""

import json
from dataclasses import dataclass
from enum import Enum

from src.domain.errors import ValidationError

# Metadata key the reservation id travels under, out to the gateway and back.
CORRELATION_KEY = "reservation_id"


class EventKind(str, Enum):
    CHECKOUT_COMPLETED = "checkout.session.completed"
    ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"
    ASYNC_PAYMENT_FAILED = "checkout.session.async_payment_failed"
    CHECKOUT_EXPIRED = "checkout.session.expired"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_type(cls, event_type: str) -> "EventKind":
        for kind in cls:
            if kind.value == event_type and kind is not cls.UNRECOGNIZED:
                return kind
        return cls.UNRECOGNIZED


# payment_status values of a completed checkout that mean the money is in
PAID_STATUSES = frozenset({"paid", "no_payment_required"})


@dataclass(frozen=True)
class GatewayEvent:
    event_id: str
    kind: EventKind
    event_type: str                 # raw type string, kept for logging
    reservation_id: str | None      # correlation token, None if absent
    session_id: str | None = None
    payment_status: str | None = None
    amount_total: int | None = None

    @property
    def confirms_payment(self) -> bool:
        """True if this event means the reservation has been paid for."""
        if self.kind is EventKind.ASYNC_PAYMENT_SUCCEEDED:
            return True
        if self.kind is EventKind.CHECKOUT_COMPLETED:
            # Older payloads omit payment_status; a completed checkout was paid.
            return self.payment_status is None or self.payment_status in PAID_STATUSES
        return False


def parse_event(payload: bytes) -> GatewayEvent:
    """Decode a verified webhook body. Raises ValidationError on malformed JSON."""
    try:
        data = json.loads(payload)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValidationError(f"Event body is not valid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise ValidationError("Event body must be a JSON object")

    event_type = str(data.get("type", ""))
    container = data.get("data")
    obj = container.get("object") if isinstance(container, dict) else None
    if not isinstance(obj, dict):
        obj = {}
    metadata = obj.get("metadata") or {}

    reservation_id = metadata.get(CORRELATION_KEY) if isinstance(metadata, dict) else None
    amount = obj.get("amount_total")

    return GatewayEvent(
        event_id=str(data.get("id", "")),
        kind=EventKind.from_type(event_type),
        event_type=event_type,
        reservation_id=str(reservation_id) if reservation_id else None,
        session_id=obj.get("id"),
        payment_status=obj.get("payment_status"),
        amount_total=amount if isinstance(amount, int) else None,
    )
