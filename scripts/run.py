"""
Local process runner for the boat booking service.

Serves the booking and webhook endpoints over HTTP.

Usage:
    source .env && python scripts/run.py

Environment variables (all required unless noted):
    STRIPE_WEBHOOK_SECRET       - webhook signing secret; the service refuses to start without it
    PAYMENT_GATEWAY             - "stripe" or "simulator" (default: stripe)
    STRIPE_API_KEY              - Stripe secret key (only when PAYMENT_GATEWAY=stripe)
    GATEWAY_TIMEOUT             - seconds before a gateway call fails (default: 10)
    DB_PATH                     - SQLite database path (default: data/booking.db)
    CLIENT_URL                  - frontend base URL for redirects (default: http://localhost:3000)
    CURRENCY                    - checkout currency (default: eur)
    WEBHOOK_TOLERANCE           - max signature age in seconds (default: 300)
    UNKNOWN_RESERVATION_POLICY  - "reject" or "accept_and_drop" (default: reject)
    HOST, PORT                  - bind address (default: 0.0.0.0:5000)
"""

import logging
import os
import sys

import uvicorn

# Make sure project root is on sys.path when run as a script
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.adapters.sqlite_asset_catalog import SqliteAssetCatalog
from src.adapters.sqlite_reservation_store import SqliteReservationStore
from src.api import create_app
from src.app import Services, build_services
from src.checkout import CheckoutConfig
from src.factory import create_payment_gateway
from src.reconciler import ReconcilerConfig, UnknownReservationPolicy

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-7s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger(__name__)


def _require_env(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        print(f"ERROR: environment variable {name!r} is not set.", file=sys.stderr)
        sys.exit(1)
    return value


def build() -> Services:
    webhook_secret = _require_env("STRIPE_WEBHOOK_SECRET")
    if os.environ.get("PAYMENT_GATEWAY", "stripe") == "stripe":
        _require_env("STRIPE_API_KEY")

    db_path = os.environ.get("DB_PATH", "data/booking.db")
    if os.path.dirname(db_path):
        os.makedirs(os.path.dirname(db_path), exist_ok=True)

    try:
        policy = UnknownReservationPolicy(os.environ.get("UNKNOWN_RESERVATION_POLICY", "reject"))
    except ValueError:
        print("ERROR: UNKNOWN_RESERVATION_POLICY must be 'reject' or 'accept_and_drop'.",
              file=sys.stderr)
        sys.exit(1)

    return build_services(
        store=SqliteReservationStore(db_path=db_path),
        catalog=SqliteAssetCatalog(db_path=db_path),
        gateway=create_payment_gateway(),
        checkout=CheckoutConfig(
            client_url=os.environ.get("CLIENT_URL", "http://localhost:3000"),
            currency=os.environ.get("CURRENCY", "eur"),
        ),
        reconciler=ReconcilerConfig(
            webhook_secret=webhook_secret,
            tolerance_seconds=int(os.environ.get("WEBHOOK_TOLERANCE", "300")),
            unknown_policy=policy,
        ),
    )


def main() -> None:
    services = build()
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "5000"))

    log.info(
        "Service starting: db=%s  gateway=%s  policy=%s",
        os.environ.get("DB_PATH", "data/booking.db"),
        os.environ.get("PAYMENT_GATEWAY", "stripe"),
        os.environ.get("UNKNOWN_RESERVATION_POLICY", "reject"),
    )
    uvicorn.run(create_app(services), host=host, port=port)


if __name__ == "__main__":
    main()
