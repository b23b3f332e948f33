"""
HTTP surface.

  POST /api/checkout/create-checkout-session    book a boat, get a checkout URL
  POST /api/checkout/webhook                     gateway confirmation events
  POST /api/checkout/{reservation_id}/retry      new checkout for an unpaid reservation
  GET  /api/bookings/my                          the caller's reservations
  GET  /api/bookings/{reservation_id}            one reservation
  GET  /health

Authentication happens upstream: the proxy in front of this service sets
X-User-Id and X-User-Role for authenticated callers.  Every route except
the webhook and /health requires them, and a USER may only book for
themselves.  Domain errors are mapped to status codes here and nowhere else.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from fastapi.concurrency import run_in_threadpool

from src.app import Services
from src.domain.errors import (
    AssetNotFoundError,
    BookingError,
    ConfigurationError,
    ForbiddenError,
    GatewayError,
    GatewayUnavailableError,
    MissingCorrelationError,
    ReservationAlreadySettledError,
    SignatureInvalidError,
    UnknownReservationError,
    ValidationError,
)
from src.domain.reservation import Reservation
from src.orchestrator import BookingRequest, BookingResult

log = logging.getLogger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"

# First match wins, so subclasses come before their bases.
_STATUS_BY_ERROR: list[tuple[type[BookingError], int]] = [
    (SignatureInvalidError, 400),
    (MissingCorrelationError, 400),
    (ValidationError, 400),
    (AssetNotFoundError, 404),
    (UnknownReservationError, 404),
    (ForbiddenError, 403),
    (ReservationAlreadySettledError, 409),
    (GatewayError, 502),
    (GatewayUnavailableError, 503),
    (ConfigurationError, 500),
]


def status_for(exc: BookingError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


# -- identity ----------------------------------------------------------------


class Role(str, Enum):
    USER = "USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


@dataclass
class Identity:
    user_id: str
    role: Role = Role.USER

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.ADMIN, Role.MANAGER)

    def can_see(self, reservation: Reservation) -> bool:
        return self.is_staff or reservation.requester_id == self.user_id

    def can_book_for(self, requester_id: str) -> bool:
        return self.is_staff or requester_id == self.user_id


def get_identity(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        role = Role((x_user_role or Role.USER.value).upper())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role {x_user_role!r}") from None
    return Identity(user_id=x_user_id, role=role)


def get_services(request: Request) -> Services:
    return request.app.state.services


# -- schemas -----------------------------------------------------------------


class BookingIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    asset_id: str | None = Field(default=None, alias="assetId")
    location_id: str | None = Field(default=None, alias="locationId")
    requester_id: str | None = Field(default=None, alias="requesterId")
    start_time: datetime | None = Field(default=None, alias="startTime")
    end_time: datetime | None = Field(default=None, alias="endTime")
    mode: str | None = None
    duration_hours: int | None = Field(default=None, alias="durationHours")
    include_captain: bool | None = Field(default=None, alias="includeCaptain")

    def to_request(self) -> BookingRequest:
        return BookingRequest(
            asset_id=self.asset_id,
            location_id=self.location_id,
            requester_id=self.requester_id,
            start_time=self.start_time,
            end_time=self.end_time,
            mode=self.mode,
            duration_hours=self.duration_hours,
            include_captain=self.include_captain,
        )


def _booking_view(result: BookingResult) -> dict:
    return {
        "reservationId": result.reservation_id,
        "url": result.redirect_url,
        "sessionId": result.session_id,
        "price": str(result.price),
    }


def _reservation_view(r: Reservation) -> dict:
    return {
        "id": r.reservation_id,
        "boatId": r.asset_id,
        "portId": r.location_id,
        "userId": r.requester_id,
        "startTime": r.start_time.isoformat(),
        "endTime": r.end_time.isoformat(),
        "mode": r.mode.value,
        "durationHours": r.duration_hours,
        "includeCaptain": r.include_captain,
        "price": str(r.price),
        "paid": r.settled,
        "status": r.status.value,
        "createdAt": r.created_at.isoformat(),
        "settledAt": r.settled_at.isoformat() if r.settled_at else None,
    }


# -- routes ------------------------------------------------------------------

checkout_router = APIRouter(prefix="/api/checkout")
bookings_router = APIRouter(prefix="/api/bookings")


@checkout_router.post("/create-checkout-session")
def create_checkout_session(
    body: BookingIn,
    identity: Identity = Depends(get_identity),
    services: Services = Depends(get_services),
) -> dict:
    request = body.to_request()
    if not request.requester_id:
        request.requester_id = identity.user_id
    elif not identity.can_book_for(request.requester_id):
        raise ForbiddenError(f"User {identity.user_id!r} cannot book for {request.requester_id!r}")
    result = services.orchestrator.book_asset(request)
    return _booking_view(result)


@checkout_router.post("/webhook")
async def webhook(request: Request) -> dict:
    services: Services = request.app.state.services
    payload = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    result = await run_in_threadpool(services.reconciler.handle, payload, signature)
    return {"received": True, "action": result.action}


@checkout_router.post("/{reservation_id}/retry")
def retry_payment(
    reservation_id: str,
    identity: Identity = Depends(get_identity),
    services: Services = Depends(get_services),
) -> dict:
    reservation = services.store.get(reservation_id)
    if reservation is None or not identity.can_see(reservation):
        raise UnknownReservationError(f"Reservation {reservation_id!r} not found")
    result = services.orchestrator.resume_payment(reservation_id)
    return _booking_view(result)


@bookings_router.get("/my")
def my_bookings(
    identity: Identity = Depends(get_identity),
    services: Services = Depends(get_services),
) -> list[dict]:
    return [_reservation_view(r) for r in services.store.list_for_requester(identity.user_id)]


@bookings_router.get("/{reservation_id}")
def get_booking(
    reservation_id: str,
    identity: Identity = Depends(get_identity),
    services: Services = Depends(get_services),
) -> dict:
    reservation = services.store.get(reservation_id)
    if reservation is None or not identity.can_see(reservation):
        raise UnknownReservationError(f"Reservation {reservation_id!r} not found")
    return _reservation_view(reservation)


async def _booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        log.error("%s %s -> %d %s: %s", request.method, request.url.path, status, exc.code, exc)
    else:
        log.info("%s %s -> %d %s: %s", request.method, request.url.path, status, exc.code, exc)
    return JSONResponse(status_code=status, content={"error": exc.code, "detail": str(exc)})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}"
        for err in exc.errors()
    )
    log.info("%s %s -> 400 %s: %s", request.method, request.url.path, ValidationError.code, problems)
    return JSONResponse(
        status_code=400,
        content={"error": ValidationError.code, "detail": f"Invalid request data: {problems}"},
    )


def create_app(services: Services) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Booking service started")
        yield
        services.close()
        log.info("Booking service stopped")

    app = FastAPI(title="Boat Booking Settlement", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    app.add_exception_handler(BookingError, _booking_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    @app.get("/health", tags=["health"])
    def health() -> dict:
        return {"status": "ok"}

    app.include_router(checkout_router, tags=["checkout"])
    app.include_router(bookings_router, tags=["bookings"])
    return app
