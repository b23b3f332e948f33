"""
Service wiring.

Every external client (store, catalog, gateway) is constructed once at
startup, injected into the components that use it, and closed at shutdown.
Tests build a Services bundle from simulators instead.
"""

import logging
from dataclasses import dataclass

from src.adapters.ports import PaymentGateway
from src.checkout import CheckoutConfig, CheckoutSessionRequester
from src.domain.catalog import AssetCatalog
from src.domain.reservation import ReservationStore
from src.orchestrator import ReservationOrchestrator
from src.reconciler import ReconcilerConfig, SettlementReconciler

log = logging.getLogger(__name__)


@dataclass
class Services:
    store: ReservationStore
    catalog: AssetCatalog
    gateway: PaymentGateway
    orchestrator: ReservationOrchestrator
    reconciler: SettlementReconciler

    def close(self) -> None:
        for name in ("gateway", "catalog", "store"):
            try:
                getattr(self, name).close()
            except Exception as exc:
                log.error("Failed to close %s: %s", name, exc)


def build_services(
    store: ReservationStore,
    catalog: AssetCatalog,
    gateway: PaymentGateway,
    checkout: CheckoutConfig,
    reconciler: ReconcilerConfig,
) -> Services:
    """
    Wire the core.

    Raises ConfigurationError when the webhook secret is missing, before
    anything can accept traffic.
    """
    settlement = SettlementReconciler(store, reconciler)
    requester = CheckoutSessionRequester(gateway, catalog, checkout)
    orchestrator = ReservationOrchestrator(store, catalog, requester)
    return Services(
        store=store,
        catalog=catalog,
        gateway=gateway,
        orchestrator=orchestrator,
        reconciler=settlement,
    )
