"""
Settlement reconciliation.

The gateway delivers confirmation events at least once, in any order,
sometimes several times concurrently.  The reconciler turns that into an
at-most-once settlement:

  1. Verify the signature over the raw body          -> SignatureInvalidError
  2. Decode the event, dispatch on its kind           (others: acknowledged, ignored)
  3. Extract the reservation id from metadata        -> MissingCorrelationError
  4. Look up the reservation                         -> UnknownReservationError (or drop, per policy)
  5. store.mark_settled(): SETTLED or ALREADY_SETTLED, both acknowledged

Steps 1-4 never mutate anything.  The reconciler never polls the gateway
and never asks for an event again; the gateway's own retries are the only
redelivery mechanism.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from src.domain.errors import (
    ConfigurationError,
    MissingCorrelationError,
    UnknownReservationError,
)
from src.domain.events import EventKind, GatewayEvent, parse_event
from src.domain.pricing import to_minor_units
from src.domain.reservation import ReservationStore, SettleOutcome
from src.domain.signature import DEFAULT_TOLERANCE_SECONDS, verify_signature

log = logging.getLogger(__name__)


class UnknownReservationPolicy(str, Enum):
    """What to answer for a well-signed event about a reservation we don't have."""

    REJECT = "reject"                    # error -> gateway retries later (replication lag)
    ACCEPT_AND_DROP = "accept_and_drop"  # acknowledge -> gateway stops retrying


@dataclass
class ReconcilerConfig:
    webhook_secret: str
    tolerance_seconds: int | None = DEFAULT_TOLERANCE_SECONDS
    unknown_policy: UnknownReservationPolicy = UnknownReservationPolicy.REJECT


@dataclass
class ReconcileResult:
    action: Literal[
        "settled",            # this event performed the settlement
        "already_settled",    # duplicate delivery, nothing changed
        "ignored",            # event kind that does not settle anything
        "awaiting_payment",   # checkout completed, payment still processing
        "dropped_unknown",    # unknown reservation, dropped per policy
    ]
    event_id: str = ""
    reservation_id: str | None = None
    details: str = ""


class SettlementReconciler:
    """
    Stateless handler for one webhook delivery at a time.

    Safe to call from many threads at once: all coordination happens in
    the ReservationStore.
    """

    def __init__(self, store: ReservationStore, config: ReconcilerConfig):
        if not config.webhook_secret:
            raise ConfigurationError("Webhook signing secret is not configured")
        self._store = store
        self._cfg = config

    def handle(self, payload: bytes, signature_header: str | None) -> ReconcileResult:
        # Step 1: authenticate the raw bytes, before any parsing
        verify_signature(
            payload,
            signature_header,
            self._cfg.webhook_secret,
            tolerance=self._cfg.tolerance_seconds,
        )

        # Step 2: decode and dispatch
        event = parse_event(payload)
        log.debug("event=%s type=%s res=%s", event.event_id, event.event_type, event.reservation_id)

        if not event.confirms_payment:
            return self._acknowledge_non_settling(event)

        # Step 3: correlation token
        rid = event.reservation_id
        if not rid:
            log.warning("event=%s type=%s rejected: no reservation id in metadata",
                        event.event_id, event.event_type)
            raise MissingCorrelationError(f"Event {event.event_id} carries no reservation id")

        # Step 4: the reservation must exist
        reservation = self._store.get(rid)
        if reservation is None:
            return self._unknown(event, rid)

        if event.amount_total is not None and event.amount_total != to_minor_units(reservation.price):
            log.warning(
                "res=%s event=%s amount mismatch: paid=%d expected=%d",
                rid, event.event_id, event.amount_total, to_minor_units(reservation.price),
            )

        # Step 5: atomic, idempotent transition
        outcome = self._store.mark_settled(rid)

        if outcome is SettleOutcome.SETTLED:
            log.info("res=%s event=%s settled", rid, event.event_id)
            return ReconcileResult(action="settled", event_id=event.event_id, reservation_id=rid)

        if outcome is SettleOutcome.ALREADY_SETTLED:
            log.info("res=%s event=%s duplicate delivery, already settled", rid, event.event_id)
            return ReconcileResult(
                action="already_settled", event_id=event.event_id, reservation_id=rid,
            )

        # NOT_FOUND: the reservation vanished between lookup and update
        return self._unknown(event, rid)

    def _acknowledge_non_settling(self, event: GatewayEvent) -> ReconcileResult:
        if event.kind is EventKind.CHECKOUT_COMPLETED:
            # Completed checkout whose payment is still processing; an
            # ASYNC_PAYMENT_SUCCEEDED event will follow.
            log.info("res=%s event=%s checkout completed, payment_status=%s: waiting",
                     event.reservation_id, event.event_id, event.payment_status)
            return ReconcileResult(
                action="awaiting_payment",
                event_id=event.event_id,
                reservation_id=event.reservation_id,
                details=f"payment_status={event.payment_status}",
            )
        elif event.kind in (EventKind.ASYNC_PAYMENT_FAILED, EventKind.CHECKOUT_EXPIRED):
            log.info("res=%s event=%s type=%s: reservation stays PENDING",
                     event.reservation_id, event.event_id, event.event_type)
        else:
            log.info("event=%s type=%s unrecognized, acknowledged", event.event_id, event.event_type)

        return ReconcileResult(
            action="ignored",
            event_id=event.event_id,
            reservation_id=event.reservation_id,
            details=f"type={event.event_type}",
        )

    def _unknown(self, event: GatewayEvent, rid: str) -> ReconcileResult:
        if self._cfg.unknown_policy is UnknownReservationPolicy.ACCEPT_AND_DROP:
            log.warning("res=%s event=%s unknown reservation, dropped", rid, event.event_id)
            return ReconcileResult(
                action="dropped_unknown", event_id=event.event_id, reservation_id=rid,
            )
        log.warning("res=%s event=%s unknown reservation, rejected", rid, event.event_id)
        raise UnknownReservationError(f"Reservation {rid!r} not found")
