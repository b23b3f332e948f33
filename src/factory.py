import os

from src.adapters.ports import PaymentGateway


def create_payment_gateway(kind: str | None = None) -> PaymentGateway:
    """
    Factory: create the right gateway adapter based on config.

    The kind can be passed explicitly or read from the PAYMENT_GATEWAY
    env var. Defaults to "stripe".
    """
    kind = kind or os.environ.get("PAYMENT_GATEWAY", "stripe")

    if kind == "stripe":
        from src.adapters.stripe_client import DEFAULT_TIMEOUT, StripeCheckoutClient

        return StripeCheckoutClient(
            api_key=os.environ["STRIPE_API_KEY"],
            timeout=float(os.environ.get("GATEWAY_TIMEOUT", DEFAULT_TIMEOUT)),
        )

    if kind == "simulator":
        from src.adapters.simulator_gateway import SimulatorPaymentGateway

        return SimulatorPaymentGateway()

    raise ValueError(f"Unknown payment gateway: {kind!r}")
