import logging

import requests
import stripe

from src.domain.errors import GatewayError, GatewayUnavailableError

from .ports import CheckoutRequest, CheckoutSession, PaymentGateway

DEFAULT_TIMEOUT = 10.0

log = logging.getLogger(__name__)

# Worth retrying later: the request never got a definitive answer.
_TRANSIENT_ERRORS = (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError)


def _session_params(request: CheckoutRequest) -> dict:
    return {
        "mode": "payment",
        "payment_method_types": ["card"],
        "success_url": request.success_url,
        "cancel_url": request.cancel_url,
        "client_reference_id": request.reference,
        "metadata": dict(request.metadata),
        "line_items": [
            {
                "price_data": {
                    "currency": request.currency,
                    "unit_amount": request.amount,
                    "product_data": {
                        "name": request.product_name,
                        "description": request.description,
                    },
                },
                "quantity": 1,
            }
        ],
    }


class StripeCheckoutClient(PaymentGateway):
    """
    Adapter: hosted Checkout sessions through the Stripe SDK.

    The SDK's HTTP transport runs on a requests.Session owned by this
    client, with a bounded timeout.  `sessions` is the SDK resource used to
    create sessions; tests pass a stand-in.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        sessions=None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.http = requests.Session()
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout, session=self.http)
        self._sessions = sessions if sessions is not None else stripe.checkout.Session

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        try:
            session = self._sessions.create(api_key=self.api_key, **_session_params(request))
        except _TRANSIENT_ERRORS as exc:
            raise GatewayUnavailableError(f"Stripe unavailable: {exc}") from exc
        except stripe.StripeError as exc:
            message = exc.user_message or str(exc)
            raise GatewayError(f"Stripe rejected checkout: {message}") from exc

        log.debug("ref=%s stripe session=%s", request.reference, session.id)
        return CheckoutSession(session_id=session.id, url=session.url)

    def close(self) -> None:
        self.http.close()
