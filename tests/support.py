"""
Shared wiring for tests that exercise the whole core.

Every external client is a simulator; nothing touches the network.
"""

from datetime import datetime, timezone
from decimal import Decimal

from src.adapters.simulator_asset_catalog import InMemoryAssetCatalog
from src.adapters.simulator_gateway import SimulatorPaymentGateway
from src.adapters.simulator_reservation_store import InMemoryReservationStore
from src.app import Services, build_services
from src.checkout import CheckoutConfig
from src.domain.catalog import Asset
from src.domain.pricing import RateSchedule
from src.orchestrator import BookingRequest
from src.reconciler import ReconcilerConfig, UnknownReservationPolicy

SECRET = "whsec_test_secret"

BOAT = Asset(
    asset_id="boat-1",
    name="Sea Breeze",
    location_id="port-1",
    rates=RateSchedule(hourly_rate=Decimal("50"), half_day_rate=Decimal("300"), full_day_rate=Decimal("500")),
)


def booking_request(**overrides) -> BookingRequest:
    fields = dict(
        asset_id="boat-1",
        location_id="port-1",
        requester_id="user-1",
        start_time=datetime(2026, 7, 1, 9, 0, tzinfo=timezone.utc),
        end_time=datetime(2026, 7, 1, 13, 0, tzinfo=timezone.utc),
        mode="per_hour",
        duration_hours=4,
        include_captain=False,
    )
    fields.update(overrides)
    return BookingRequest(**fields)


def make_services(
    store=None,
    policy: UnknownReservationPolicy = UnknownReservationPolicy.REJECT,
    tolerance: int | None = 300,
) -> Services:
    return build_services(
        store=store if store is not None else InMemoryReservationStore(),
        catalog=InMemoryAssetCatalog([BOAT]),
        gateway=SimulatorPaymentGateway(),
        checkout=CheckoutConfig(client_url="http://localhost:3000", currency="eur"),
        reconciler=ReconcilerConfig(
            webhook_secret=SECRET, tolerance_seconds=tolerance, unknown_policy=policy,
        ),
    )


