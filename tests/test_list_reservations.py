"""
Operator CLI against a throwaway SQLite file.
"""

from scripts.list_reservations import main
from src.adapters.sqlite_reservation_store import SqliteReservationStore

from tests.contracts.reservation_store_contract import make_reservation


def _seed(db: str, **kwargs):
    store = SqliteReservationStore(db)
    r = make_reservation(**kwargs)
    store.create(r)
    store.close()
    return r


def test_detach_boat_keeps_reservation(tmp_path, capsys):
    db = str(tmp_path / "booking.db")
    r = _seed(db, asset_id="boat-gone")
    _seed(db, asset_id="boat-stays")

    main(["detach", "boat", "boat-gone"], db_path=db)

    assert "from 1 reservation(s)" in capsys.readouterr().out
    store = SqliteReservationStore(db)
    got = store.get(r.reservation_id)
    assert got is not None
    assert got.asset_id is None
    assert got.requester_id == "user-1"
    store.close()


def test_detach_user(tmp_path, capsys):
    db = str(tmp_path / "booking.db")
    _seed(db, requester_id="deleted-user")

    main(["detach", "user", "deleted-user"], db_path=db)

    store = SqliteReservationStore(db)
    assert store.list_for_requester("deleted-user") == []
    assert len(store.list_pending()) == 1
    store.close()


def test_detach_unknown_kind_prints_usage(tmp_path, capsys):
    db = str(tmp_path / "booking.db")
    r = _seed(db)

    main(["detach", "captain", "x"], db_path=db)

    assert "Usage" in capsys.readouterr().out
    store = SqliteReservationStore(db)
    assert store.get(r.reservation_id).asset_id == "boat-1"
    store.close()


def test_list_pending_shows_deleted_boat(tmp_path, capsys):
    db = str(tmp_path / "booking.db")
    _seed(db, asset_id="boat-gone")
    main(["detach", "boat", "boat-gone"], db_path=db)
    capsys.readouterr()

    main([], db_path=db)

    assert "(deleted)" in capsys.readouterr().out
