import json
import uuid

from src.domain.errors import GatewayError, GatewayUnavailableError
from src.domain.events import EventKind
from src.domain.signature import sign_payload

from .ports import CheckoutRequest, CheckoutSession, PaymentGateway


class SimulatorPaymentGateway(PaymentGateway):
    """
    In-memory fake for testing. No mocking framework needed.

    Test helpers:
        fail_next(exc)           make the next create_checkout_session() raise exc
        go_offline() / go_online()
                                 every call raises GatewayUnavailableError while offline
        build_event()            the JSON body the gateway would POST for a session
        signed_event()           same, plus a matching signature header
        requests                 list of CheckoutRequest received, in order
        sessions                 session_id -> CheckoutRequest
    """

    def __init__(self, base_url: str = "https://checkout.simulator.local/pay"):
        self.base_url = base_url
        self.requests: list[CheckoutRequest] = []
        self.sessions: dict[str, CheckoutRequest] = {}
        self._offline = False
        self._next_failure: Exception | None = None

    def go_offline(self) -> None:
        self._offline = True

    def go_online(self) -> None:
        self._offline = False

    def fail_next(self, exc: Exception) -> None:
        self._next_failure = exc

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        if self._offline:
            raise GatewayUnavailableError("Simulator gateway is offline")
        if self._next_failure is not None:
            exc, self._next_failure = self._next_failure, None
            raise exc
        if request.amount < 0:
            raise GatewayError(f"Invalid amount: {request.amount}")

        session_id = f"cs_sim_{uuid.uuid4().hex[:16]}"
        self.requests.append(request)
        self.sessions[session_id] = request
        return CheckoutSession(session_id=session_id, url=f"{self.base_url}/{session_id}")

    # -- outbound events -----------------------------------------------------

    def build_event(
        self,
        session_id: str,
        kind: EventKind | str = EventKind.CHECKOUT_COMPLETED,
        payment_status: str = "paid",
        event_id: str | None = None,
    ) -> bytes:
        """The webhook body for a session the simulator opened."""
        request = self.sessions[session_id]
        event_type = kind.value if isinstance(kind, EventKind) else kind
        body = {
            "id": event_id or f"evt_sim_{uuid.uuid4().hex[:16]}",
            "type": event_type,
            "data": {
                "object": {
                    "id": session_id,
                    "payment_status": payment_status,
                    "amount_total": request.amount,
                    "currency": request.currency,
                    "metadata": dict(request.metadata),
                }
            },
        }
        return json.dumps(body).encode()

    def signed_event(self, session_id: str, secret: str, **kwargs) -> tuple[bytes, str]:
        """Return (body, signature header) for a session event."""
        payload = self.build_event(session_id, **kwargs)
        return payload, sign_payload(payload, secret)
