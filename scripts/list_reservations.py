#!/usr/bin/env python3
"""
Operator CLI: inspect reservations and their settlement state, and detach
reservations from boats, ports or users deleted by the admin service.

Usage (from project root):
    python scripts/list_reservations.py                  # list unpaid reservations
    python scripts/list_reservations.py user <user_id>   # all reservations of a user
    python scripts/list_reservations.py show <id>        # full reservation details
    python scripts/list_reservations.py detach boat|port|user <id>
                                 # after deleting a boat, port or user elsewhere:
                                 # clear the reference, keep the reservations
"""

import os
import sys

# Allow running as `python scripts/list_reservations.py` from project root.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.adapters.sqlite_reservation_store import SqliteReservationStore
from src.domain.reservation import Reservation

DB_PATH = os.environ.get("DB_PATH", "data/booking.db")


def _print_table(reservations: list[Reservation]) -> None:
    print(f"\n{'ID':<36}  {'Status':<8}  {'Mode':<8}  {'Price':>9}  {'Boat':<12}  Start")
    print("-" * 100)
    for r in reservations:
        print(
            f"{r.reservation_id:<36}  {r.status.value:<8}  {r.mode.value:<8}  "
            f"{r.price:>9}  {(r.asset_id or '(deleted)'):<12}  {r.start_time:%Y-%m-%d %H:%M}"
        )
    print()


def list_pending(store: SqliteReservationStore) -> None:
    reservations = store.list_pending()
    if not reservations:
        print("No unpaid reservations.")
        return
    _print_table(reservations)


def list_for_user(store: SqliteReservationStore, user_id: str) -> None:
    reservations = store.list_for_requester(user_id)
    if not reservations:
        print(f"No reservations for user {user_id}.")
        return
    _print_table(reservations)


def show(store: SqliteReservationStore, reservation_id: str) -> None:
    r = store.get(reservation_id)
    if not r:
        print(f"Reservation {reservation_id} not found.")
        return

    print(f"\n{'=' * 60}")
    print(f"  Reservation {r.reservation_id}  |  {r.status.value}")
    print(f"  Boat: {r.asset_id or '(deleted)'}   Port: {r.location_id or '(deleted)'}")
    print(f"  User: {r.requester_id or '(deleted)'}")
    print(f"  Window: {r.start_time.isoformat()} -> {r.end_time.isoformat()}")
    print(f"  Mode: {r.mode.value}  ({r.duration_hours}h)  captain={r.include_captain}")
    print(f"  Price: {r.price}")
    print(f"  Created: {r.created_at}")
    if r.settled_at:
        print(f"  Settled: {r.settled_at}")
    print(f"{'=' * 60}\n")


_DETACH_ARGS = {"boat": "asset_id", "port": "location_id", "user": "requester_id"}


def detach(store: SqliteReservationStore, kind: str, entity_id: str) -> None:
    count = store.clear_references(**{_DETACH_ARGS[kind]: entity_id})
    print(f"Cleared {kind} {entity_id} from {count} reservation(s).")


def main(argv: list[str] | None = None, db_path: str = DB_PATH) -> None:
    args = sys.argv[1:] if argv is None else argv
    store = SqliteReservationStore(db_path)
    try:
        if not args:
            list_pending(store)
            return

        cmd = args[0]
        if cmd == "user" and len(args) >= 2:
            list_for_user(store, args[1])
        elif cmd == "show" and len(args) >= 2:
            show(store, args[1])
        elif cmd == "detach" and len(args) >= 3 and args[1] in _DETACH_ARGS:
            detach(store, args[1], args[2])
        else:
            print(__doc__)
    finally:
        store.close()


if __name__ == "__main__":
    main()
