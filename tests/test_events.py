"""
Decoding gateway events.
"""

import json

import pytest

from src.domain.errors import ValidationError
from src.domain.events import EventKind, parse_event


def _body(event_type="checkout.session.completed", payment_status="paid", metadata=None, **extra) -> bytes:
    obj = {"id": "cs_1", "payment_status": payment_status, "amount_total": 20000}
    obj["metadata"] = {"reservation_id": "res-1"} if metadata is None else metadata
    obj.update(extra)
    return json.dumps({"id": "evt_1", "type": event_type, "data": {"object": obj}}).encode()


class TestParseEvent:

    def test_completed_paid(self):
        event = parse_event(_body())
        assert event.event_id == "evt_1"
        assert event.kind is EventKind.CHECKOUT_COMPLETED
        assert event.reservation_id == "res-1"
        assert event.session_id == "cs_1"
        assert event.amount_total == 20000
        assert event.confirms_payment is True

    def test_completed_unpaid_does_not_confirm(self):
        event = parse_event(_body(payment_status="unpaid"))
        assert event.kind is EventKind.CHECKOUT_COMPLETED
        assert event.confirms_payment is False

    def test_completed_without_payment_status_confirms(self):
        payload = json.dumps({
            "id": "evt_1",
            "type": "checkout.session.completed",
            "data": {"object": {"metadata": {"reservation_id": "res-1"}}},
        }).encode()
        assert parse_event(payload).confirms_payment is True

    def test_async_success_confirms(self):
        event = parse_event(_body("checkout.session.async_payment_succeeded"))
        assert event.kind is EventKind.ASYNC_PAYMENT_SUCCEEDED
        assert event.confirms_payment is True

    @pytest.mark.parametrize("event_type", [
        "checkout.session.async_payment_failed",
        "checkout.session.expired",
    ])
    def test_failure_kinds_never_confirm(self, event_type):
        assert parse_event(_body(event_type)).confirms_payment is False

    def test_unknown_type_is_unrecognized(self):
        event = parse_event(_body("invoice.paid"))
        assert event.kind is EventKind.UNRECOGNIZED
        assert event.event_type == "invoice.paid"
        assert event.confirms_payment is False

    def test_from_type_never_matches_the_fallback_arm(self):
        assert EventKind.from_type("unrecognized") is EventKind.UNRECOGNIZED

    def test_missing_metadata(self):
        assert parse_event(_body(metadata={})).reservation_id is None

    def test_metadata_not_an_object(self):
        assert parse_event(_body(metadata="res-1")).reservation_id is None

    def test_missing_data_object(self):
        event = parse_event(b'{"id": "evt_2", "type": "checkout.session.completed"}')
        assert event.reservation_id is None
        assert event.session_id is None

    def test_non_integer_amount_dropped(self):
        assert parse_event(_body(amount_total="200.00")).amount_total is None

    def test_invalid_json(self):
        with pytest.raises(ValidationError):
            parse_event(b"{not json")

    def test_non_object_body(self):
        with pytest.raises(ValidationError):
            parse_event(b"[1, 2, 3]")

    def test_invalid_utf8(self):
        with pytest.raises(ValidationError):
            parse_event(b"\x80not utf-8")
