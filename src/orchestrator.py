"""
Booking orchestration.

Flow of book_asset():
  1. Validate the request shape
  2. Look up the boat and its rate schedule
  3. Compute the price (frozen from here on)
  4. Persist a PENDING reservation, so an id exists to correlate with
  5. Open a checkout session carrying that id
  6. Return the redirect; settlement happens later, via the webhook

A gateway failure in step 5 leaves the reservation PENDING.  The user can
retry payment against the same id with resume_payment().
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from src.checkout import CheckoutSessionRequester
from src.domain.catalog import AssetCatalog
from src.domain.errors import (
    AssetNotFoundError,
    BookingError,
    ReservationAlreadySettledError,
    UnknownReservationError,
    ValidationError,
)
from src.domain.pricing import BookingMode, calculate_price
from src.domain.reservation import Reservation, ReservationStore

log = logging.getLogger(__name__)


@dataclass
class BookingRequest:
    """Raw booking input. Every field is required; validate() says which are missing."""

    asset_id: str | None = None
    location_id: str | None = None
    requester_id: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    mode: BookingMode | str | None = None
    duration_hours: int | None = None
    include_captain: bool | None = None

    def validate(self) -> None:
        """Raise ValidationError (or InvalidModeError) if the request is unusable."""
        missing = [
            name for name in (
                "asset_id", "location_id", "requester_id", "start_time",
                "end_time", "mode", "duration_hours", "include_captain",
            )
            if getattr(self, name) in (None, "")
        ]
        if missing:
            raise ValidationError(f"Missing required booking data: {', '.join(missing)}")

        self.mode = BookingMode.parse(self.mode)
        self.start_time = _as_utc(self.start_time)
        self.end_time = _as_utc(self.end_time)

        if self.end_time <= self.start_time:
            raise ValidationError("end_time must be after start_time")
        if isinstance(self.duration_hours, bool) or not isinstance(self.duration_hours, int):
            raise ValidationError(f"duration_hours must be an integer, got {self.duration_hours!r}")
        if self.duration_hours < 1:
            raise ValidationError(f"duration_hours must be at least 1, got {self.duration_hours}")
        if not isinstance(self.include_captain, bool):
            raise ValidationError(f"include_captain must be a boolean, got {self.include_captain!r}")


def _as_utc(value: datetime) -> datetime:
    if not isinstance(value, datetime):
        raise ValidationError(f"Expected a timestamp, got {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class BookingResult:
    reservation_id: str
    redirect_url: str
    session_id: str
    price: Decimal


class ReservationOrchestrator:

    def __init__(
        self,
        store: ReservationStore,
        catalog: AssetCatalog,
        checkout: CheckoutSessionRequester,
    ):
        self._store = store
        self._catalog = catalog
        self._checkout = checkout

    def book_asset(self, request: BookingRequest) -> BookingResult:
        request.validate()

        asset = self._catalog.get_asset(request.asset_id)
        if asset is None:
            log.info("boat=%s booking refused: boat not found", request.asset_id)
            raise AssetNotFoundError(f"Boat {request.asset_id!r} not found")

        price = calculate_price(
            asset.rates, request.mode, request.duration_hours, request.include_captain,
        )

        reservation = Reservation.new(
            asset_id=request.asset_id,
            location_id=request.location_id,
            requester_id=request.requester_id,
            start_time=request.start_time,
            end_time=request.end_time,
            mode=request.mode,
            duration_hours=request.duration_hours,
            include_captain=request.include_captain,
            price=price,
        )
        self._store.create(reservation)
        log.info(
            "res=%s created PENDING boat=%s user=%s mode=%s price=%s",
            reservation.reservation_id, reservation.asset_id,
            reservation.requester_id, reservation.mode.value, price,
        )

        return self._open_checkout(reservation)

    def resume_payment(self, reservation_id: str) -> BookingResult:
        """Open a fresh checkout session for an unpaid reservation, at its frozen price."""
        reservation = self._store.get(reservation_id)
        if reservation is None:
            raise UnknownReservationError(f"Reservation {reservation_id!r} not found")
        if reservation.settled:
            raise ReservationAlreadySettledError(f"Reservation {reservation_id} is already paid")

        log.info("res=%s resuming payment", reservation_id)
        return self._open_checkout(reservation)

    def _open_checkout(self, reservation: Reservation) -> BookingResult:
        try:
            session = self._checkout.request_session(reservation)
        except BookingError as exc:
            log.error(
                "res=%s checkout failed, reservation stays PENDING: %s",
                reservation.reservation_id, exc,
            )
            raise

        return BookingResult(
            reservation_id=reservation.reservation_id,
            redirect_url=session.url,
            session_id=session.session_id,
            price=reservation.price,
        )
