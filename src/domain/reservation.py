"""
ReservationStore port: the system of record for reservations and their
settlement state.

A reservation is created PENDING with a frozen price and moves to SETTLED
exactly once, when a payment confirmation is accepted.  Nothing else about
it ever changes, except that a reference to a deleted boat, port or user is
cleared to None.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from src.domain.pricing import BookingMode


class ReservationStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"


class SettleOutcome(str, Enum):
    """Result of ReservationStore.mark_settled(). None of these is an error."""

    SETTLED = "settled"                  # this call performed the transition
    ALREADY_SETTLED = "already_settled"  # someone else did, earlier or concurrently
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    asset_id: str | None        # weak reference to a boat
    location_id: str | None     # weak reference to a pickup port
    requester_id: str | None    # weak reference to a user
    start_time: datetime
    end_time: datetime
    mode: BookingMode
    duration_hours: int
    include_captain: bool
    price: Decimal              # frozen at creation, never recomputed
    created_at: datetime
    settled: bool = False
    settled_at: datetime | None = None

    @classmethod
    def new(
        cls,
        asset_id: str,
        location_id: str,
        requester_id: str,
        start_time: datetime,
        end_time: datetime,
        mode: BookingMode,
        duration_hours: int,
        include_captain: bool,
        price: Decimal,
    ) -> "Reservation":
        """A fresh, unsettled reservation with a new opaque id."""
        return cls(
            reservation_id=str(uuid.uuid4()),
            asset_id=asset_id,
            location_id=location_id,
            requester_id=requester_id,
            start_time=start_time,
            end_time=end_time,
            mode=mode,
            duration_hours=duration_hours,
            include_captain=include_captain,
            price=price,
            created_at=datetime.now(timezone.utc),
        )

    @property
    def status(self) -> ReservationStatus:
        return ReservationStatus.SETTLED if self.settled else ReservationStatus.PENDING


class ReservationStore(ABC):
    """
    Port: persist reservations and settle them.

    Implementations must make mark_settled() atomic per reservation id:
    when several callers race on the same id, exactly one sees SETTLED and
    the others see ALREADY_SETTLED.  Different ids must not block each other.
    """

    @abstractmethod
    def create(self, reservation: Reservation) -> str:
        """Persist a new reservation. Returns its id. Raises ValueError on duplicate id."""
        ...

    @abstractmethod
    def get(self, reservation_id: str) -> Reservation | None:
        """Return the reservation, or None if not found."""
        ...

    @abstractmethod
    def mark_settled(self, reservation_id: str) -> SettleOutcome:
        """Atomically flip settled False -> True."""
        ...

    @abstractmethod
    def list_for_requester(self, requester_id: str) -> list[Reservation]:
        """All reservations of one user, newest first."""
        ...

    @abstractmethod
    def list_pending(self) -> list[Reservation]:
        """All unsettled reservations, oldest first."""
        ...

    @abstractmethod
    def clear_references(
        self,
        asset_id: str | None = None,
        location_id: str | None = None,
        requester_id: str | None = None,
    ) -> int:
        """
        Null out references to a removed boat, port or user.

        Returns the number of reservations touched.  The reservations
        themselves survive.  Deleting entities happens in the admin service;
        operators run `scripts/list_reservations.py detach` afterwards.
        """
        ...

    def close(self) -> None:
        """Release underlying resources. Default: nothing to release."""
