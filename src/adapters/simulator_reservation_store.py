"""
In-memory ReservationStore for testing. No database required.

Settlement takes a lock scoped to the reservation id, never a store-wide one.
"""

import dataclasses
import itertools
import threading
from datetime import datetime, timezone

from src.domain.reservation import Reservation, ReservationStore, SettleOutcome


class InMemoryReservationStore(ReservationStore):

    def __init__(self):
        self._store: dict[str, Reservation] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._order: dict[str, int] = {}
        self._counter = itertools.count()

    def _lock_for(self, reservation_id: str) -> threading.Lock:
        # dict.setdefault is atomic, so racing callers end up with the same lock.
        return self._locks.setdefault(reservation_id, threading.Lock())

    def create(self, reservation: Reservation) -> str:
        with self._lock_for(reservation.reservation_id):
            if reservation.reservation_id in self._store:
                raise ValueError(f"Duplicate reservation id {reservation.reservation_id}")
            if reservation.end_time <= reservation.start_time:
                raise ValueError("end_time must be after start_time")
            self._order[reservation.reservation_id] = next(self._counter)
            self._store[reservation.reservation_id] = reservation
        return reservation.reservation_id

    def get(self, reservation_id: str) -> Reservation | None:
        return self._store.get(reservation_id)

    def mark_settled(self, reservation_id: str) -> SettleOutcome:
        with self._lock_for(reservation_id):
            current = self._store.get(reservation_id)
            if current is None:
                return SettleOutcome.NOT_FOUND
            if current.settled:
                return SettleOutcome.ALREADY_SETTLED
            self._store[reservation_id] = dataclasses.replace(
                current, settled=True, settled_at=datetime.now(timezone.utc)
            )
            return SettleOutcome.SETTLED

    def _sort_key(self, r: Reservation) -> tuple:
        # Insertion order breaks ties between identical timestamps.
        return (r.created_at, self._order[r.reservation_id])

    def list_for_requester(self, requester_id: str) -> list[Reservation]:
        matches = [r for r in list(self._store.values()) if r.requester_id == requester_id]
        return sorted(matches, key=self._sort_key, reverse=True)

    def list_pending(self) -> list[Reservation]:
        pending = [r for r in list(self._store.values()) if not r.settled]
        return sorted(pending, key=self._sort_key)

    def clear_references(
        self,
        asset_id: str | None = None,
        location_id: str | None = None,
        requester_id: str | None = None,
    ) -> int:
        touched = 0
        for reservation_id in list(self._store):
            with self._lock_for(reservation_id):
                r = self._store[reservation_id]
                changes = {}
                if asset_id is not None and r.asset_id == asset_id:
                    changes["asset_id"] = None
                if location_id is not None and r.location_id == location_id:
                    changes["location_id"] = None
                if requester_id is not None and r.requester_id == requester_id:
                    changes["requester_id"] = None
                if changes:
                    self._store[reservation_id] = dataclasses.replace(r, **changes)
                    touched += 1
        return touched
