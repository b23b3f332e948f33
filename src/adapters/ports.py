from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class CheckoutRequest:
    """Everything the gateway needs to open a hosted checkout page."""

    reference: str                 # reservation id, for logging and idempotency
    amount: int                    # minor currency units (cents)
    currency: str                  # ISO 4217, lower case: "eur"
    product_name: str
    description: str
    success_url: str
    cancel_url: str
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class CheckoutSession:
    """A hosted checkout page opened by the gateway."""

    session_id: str
    url: str


class PaymentGateway(ABC):
    """
    Port: how we ask the payment provider to collect money.

    The business logic depends ONLY on this interface.
    It doesn't know or care whether sessions are opened on the real
    Stripe API or an in-memory simulator.

    Implementations raise GatewayUnavailableError on transport failure,
    timeout or a 5xx answer, and GatewayError when the provider rejects
    the request.
    """

    @abstractmethod
    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        """Open a checkout session. metadata must be echoed back in webhook events."""
        ...

    def close(self) -> None:
        """Release underlying resources. Default: nothing to release."""
