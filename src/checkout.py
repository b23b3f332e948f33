"""
Opens a hosted checkout session for a reservation.

The amount is the reservation's frozen price; nothing is recomputed here.
The reservation id travels to the gateway as metadata and comes back,
verbatim, in the confirmation event.
"""

import logging
from dataclasses import dataclass

from src.adapters.ports import CheckoutRequest, CheckoutSession, PaymentGateway
from src.domain.catalog import AssetCatalog
from src.domain.errors import AssetNotFoundError
from src.domain.events import CORRELATION_KEY
from src.domain.pricing import to_minor_units
from src.domain.reservation import Reservation

log = logging.getLogger(__name__)


@dataclass
class CheckoutConfig:
    client_url: str = "http://localhost:3000"
    currency: str = "eur"

    def success_url(self, reservation_id: str) -> str:
        return f"{self.client_url.rstrip('/')}/success?reservationId={reservation_id}"

    def cancel_url(self) -> str:
        return f"{self.client_url.rstrip('/')}/cancel"


class CheckoutSessionRequester:

    def __init__(self, gateway: PaymentGateway, catalog: AssetCatalog, config: CheckoutConfig):
        self._gateway = gateway
        self._catalog = catalog
        self._cfg = config

    def request_session(self, reservation: Reservation) -> CheckoutSession:
        """
        Ask the gateway for a checkout page.

        Raises AssetNotFoundError if the boat is gone, GatewayUnavailableError
        or GatewayError from the gateway.  Never touches the store.
        """
        rid = reservation.reservation_id
        asset = self._catalog.get_asset(reservation.asset_id) if reservation.asset_id else None
        if asset is None:
            raise AssetNotFoundError(f"Boat {reservation.asset_id!r} not found for reservation {rid}")

        metadata = {CORRELATION_KEY: rid}
        for key, value in (
            ("requester_id", reservation.requester_id),
            ("asset_id", reservation.asset_id),
            ("location_id", reservation.location_id),
        ):
            if value:
                metadata[key] = value

        request = CheckoutRequest(
            reference=rid,
            amount=to_minor_units(reservation.price),
            currency=self._cfg.currency,
            product_name=asset.name,
            description=(
                f"{reservation.mode.value} booking from "
                f"{reservation.start_time.isoformat()} to {reservation.end_time.isoformat()}"
            ),
            success_url=self._cfg.success_url(rid),
            cancel_url=self._cfg.cancel_url(),
            metadata=metadata,
        )

        session = self._gateway.create_checkout_session(request)
        log.info(
            "res=%s checkout session=%s amount=%d %s",
            rid, session.session_id, request.amount, request.currency,
        )
        return session
