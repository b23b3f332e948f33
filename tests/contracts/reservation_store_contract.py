"""
Adapter contract for ReservationStore.

Any implementation (in-memory, SQLite, ...) must pass these tests,
including the concurrent settlement race.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.domain.pricing import BookingMode
from src.domain.reservation import Reservation, ReservationStatus, ReservationStore, SettleOutcome

START = datetime(2026, 7, 1, 9, 0, tzinfo=timezone.utc)


def make_reservation(
    requester_id: str = "user-1",
    asset_id: str = "boat-1",
    location_id: str = "port-1",
    price: str = "200",
    start: datetime = START,
) -> Reservation:
    return Reservation.new(
        asset_id=asset_id,
        location_id=location_id,
        requester_id=requester_id,
        start_time=start,
        end_time=start + timedelta(hours=4),
        mode=BookingMode.PER_HOUR,
        duration_hours=4,
        include_captain=False,
        price=Decimal(price),
    )


class ReservationStoreContract(ABC):

    @abstractmethod
    def create_store(self) -> ReservationStore:
        """Return a fresh, empty store."""
        ...

    # -- create / get ----------------------------------------------------------

    def test_create_and_get(self):
        store = self.create_store()
        r = make_reservation(price="312.50")
        rid = store.create(r)
        assert rid == r.reservation_id

        got = store.get(rid)
        assert got is not None
        assert got.reservation_id == rid
        assert got.asset_id == "boat-1"
        assert got.location_id == "port-1"
        assert got.requester_id == "user-1"
        assert got.start_time == START
        assert got.end_time == START + timedelta(hours=4)
        assert got.mode is BookingMode.PER_HOUR
        assert got.duration_hours == 4
        assert got.include_captain is False
        assert got.price == Decimal("312.50")

    def test_new_reservation_is_pending(self):
        store = self.create_store()
        rid = store.create(make_reservation())
        got = store.get(rid)
        assert got.settled is False
        assert got.settled_at is None
        assert got.status is ReservationStatus.PENDING

    def test_unknown_returns_none(self):
        store = self.create_store()
        assert store.get("does-not-exist") is None

    def test_duplicate_id_rejected(self):
        store = self.create_store()
        r = make_reservation()
        store.create(r)
        with pytest.raises(ValueError):
            store.create(r)

    def test_end_before_start_rejected(self):
        store = self.create_store()
        bad = Reservation.new(
            asset_id="boat-1", location_id="port-1", requester_id="user-1",
            start_time=START, end_time=START - timedelta(hours=1),
            mode=BookingMode.FULL_DAY, duration_hours=8, include_captain=False,
            price=Decimal("500"),
        )
        with pytest.raises(ValueError):
            store.create(bad)

    # -- settlement ------------------------------------------------------------

    def test_mark_settled_once(self):
        store = self.create_store()
        rid = store.create(make_reservation())
        assert store.mark_settled(rid) is SettleOutcome.SETTLED

        got = store.get(rid)
        assert got.settled is True
        assert got.settled_at is not None
        assert got.status is ReservationStatus.SETTLED

    def test_mark_settled_twice_reports_already_settled(self):
        store = self.create_store()
        rid = store.create(make_reservation())
        store.mark_settled(rid)
        first = store.get(rid)

        assert store.mark_settled(rid) is SettleOutcome.ALREADY_SETTLED
        again = store.get(rid)
        assert again.settled is True
        assert again.settled_at == first.settled_at

    def test_mark_settled_unknown(self):
        store = self.create_store()
        assert store.mark_settled("does-not-exist") is SettleOutcome.NOT_FOUND
        assert store.get("does-not-exist") is None

    def test_settlement_leaves_terms_untouched(self):
        store = self.create_store()
        r = make_reservation(price="450")
        store.create(r)
        store.mark_settled(r.reservation_id)
        got = store.get(r.reservation_id)
        assert got.price == Decimal("450")
        assert got.start_time == r.start_time
        assert got.end_time == r.end_time
        assert got.asset_id == r.asset_id

    def test_settling_one_does_not_settle_another(self):
        store = self.create_store()
        a = store.create(make_reservation())
        b = store.create(make_reservation())
        store.mark_settled(a)
        assert store.get(b).settled is False

    def test_concurrent_settlement_has_exactly_one_winner(self):
        store = self.create_store()
        rid = store.create(make_reservation())
        n = 16
        barrier = threading.Barrier(n)
        outcomes: list[SettleOutcome] = []
        lock = threading.Lock()

        def settle():
            barrier.wait()
            outcome = store.mark_settled(rid)
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=settle) for _ in range(n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(SettleOutcome.SETTLED) == 1
        assert outcomes.count(SettleOutcome.ALREADY_SETTLED) == n - 1
        assert store.get(rid).settled is True

    # -- listings ----------------------------------------------------------------

    def test_list_for_requester_newest_first(self):
        store = self.create_store()
        older = make_reservation(requester_id="alice")
        store.create(older)
        newer = make_reservation(requester_id="alice")
        store.create(newer)
        store.create(make_reservation(requester_id="bob"))

        result = store.list_for_requester("alice")
        assert [r.reservation_id for r in result] == [newer.reservation_id, older.reservation_id]

    def test_list_for_requester_unknown_user_is_empty(self):
        store = self.create_store()
        assert store.list_for_requester("nobody") == []

    def test_list_pending_excludes_settled(self):
        store = self.create_store()
        paid = store.create(make_reservation())
        unpaid = store.create(make_reservation())
        store.mark_settled(paid)

        assert [r.reservation_id for r in store.list_pending()] == [unpaid]

    # -- weak references ---------------------------------------------------------

    def test_clear_asset_reference_keeps_reservation(self):
        store = self.create_store()
        r = make_reservation(asset_id="boat-gone")
        store.create(r)
        store.create(make_reservation(asset_id="boat-stays"))

        assert store.clear_references(asset_id="boat-gone") == 1

        got = store.get(r.reservation_id)
        assert got is not None
        assert got.asset_id is None
        assert got.location_id == "port-1"
        assert got.requester_id == "user-1"
        assert got.price == r.price

    def test_clear_requester_reference(self):
        store = self.create_store()
        r = make_reservation(requester_id="deleted-user")
        store.create(r)
        store.clear_references(requester_id="deleted-user")
        assert store.get(r.reservation_id).requester_id is None
        assert store.list_for_requester("deleted-user") == []

    def test_clear_references_does_not_unsettle(self):
        store = self.create_store()
        r = make_reservation(location_id="port-gone")
        store.create(r)
        store.mark_settled(r.reservation_id)
        store.clear_references(location_id="port-gone")

        got = store.get(r.reservation_id)
        assert got.location_id is None
        assert got.settled is True

    def test_clear_references_without_match(self):
        store = self.create_store()
        store.create(make_reservation())
        assert store.clear_references(asset_id="other") == 0
        assert store.clear_references() == 0
