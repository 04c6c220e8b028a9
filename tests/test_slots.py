import threading
from datetime import date, time

import pytest

from skilllink.bookings import BookingService
from skilllink.errors import SlotNotFound, SlotUnavailable
from skilllink.models import AvailabilitySlot, Booking, User
from skilllink.slots import SlotAvailabilityManager


def test_claim_then_release(test_db_session, make_slot):
    make_slot("s-1")
    mgr = SlotAvailabilityManager(test_db_session)

    mgr.claim("s-1")
    test_db_session.commit()
    assert test_db_session.get(AvailabilitySlot, "s-1").is_available is False

    with pytest.raises(SlotUnavailable):
        mgr.claim("s-1")
    test_db_session.rollback()

    assert mgr.release("s-1") is True
    test_db_session.commit()
    assert test_db_session.get(AvailabilitySlot, "s-1").is_available is True


def test_release_is_idempotent(test_db_session, make_slot):
    make_slot("s-1")
    mgr = SlotAvailabilityManager(test_db_session)
    assert mgr.release("s-1") is False
    assert mgr.release("s-1") is False
    assert test_db_session.get(AvailabilitySlot, "s-1").is_available is True


def test_claim_and_release_unknown_slot(test_db_session):
    mgr = SlotAvailabilityManager(test_db_session)
    with pytest.raises(SlotNotFound):
        mgr.claim("missing")
    with pytest.raises(SlotNotFound):
        mgr.release("missing")


def test_concurrent_bookings_for_one_slot(test_db_session, session_factory, make_user, make_slot):
    seekers = [f"seek-{i}" for i in range(6)]
    make_user("prov-1", role="provider")
    for s in seekers:
        make_user(s)
    make_slot("slot-1", provider_id="prov-1")
    # Leave the database to the worker threads
    test_db_session.close()

    barrier = threading.Barrier(len(seekers))
    outcomes = []

    def attempt(seeker_id):
        db = session_factory()
        try:
            barrier.wait()
            seeker = db.get(User, seeker_id)
            try:
                BookingService(db).create(seeker, "prov-1", "slot-1", "Session")
                outcomes.append("booked")
            except SlotUnavailable:
                outcomes.append("taken")
        finally:
            db.close()

    threads = [threading.Thread(target=attempt, args=(s,)) for s in seekers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("booked") == 1
    assert outcomes.count("taken") == len(seekers) - 1

    db = session_factory()
    try:
        assert db.query(Booking).filter(Booking.slot_id == "slot-1").count() == 1
        assert db.get(AvailabilitySlot, "slot-1").is_available is False
    finally:
        db.close()


def test_failed_booking_insert_leaves_slot_open(client, test_db_session, marketplace, book, monkeypatch):
    original_add = test_db_session.add

    def broken_add(obj):
        if isinstance(obj, Booking):
            # Reference a seeker that does not exist so the insert hits the FK
            obj.seeker_id = "ghost"
        original_add(obj)

    monkeypatch.setattr(test_db_session, "add", broken_add)

    r = book()
    assert r.status_code == 400
    assert r.json() == {"error": "Failed to create booking"}

    monkeypatch.undo()
    assert test_db_session.get(AvailabilitySlot, "slot-1").is_available is True
    assert test_db_session.query(Booking).count() == 0


def test_provider_publishes_and_withdraws_slots(client, make_user, auth):
    make_user("prov-1", role="provider")
    make_user("seek-1")

    r = client.post(
        "/slots", json={"date": "2024-01-10", "start_time": "09:00", "end_time": "10:00"}, headers=auth("prov-1")
    )
    assert r.status_code == 201
    slot = r.json()["slot"]
    assert slot["is_available"] is True
    assert slot["provider_id"] == "prov-1"

    dup = client.post(
        "/slots", json={"date": "2024-01-10", "start_time": "09:00", "end_time": "10:00"}, headers=auth("prov-1")
    )
    assert dup.status_code == 409

    backwards = client.post(
        "/slots", json={"date": "2024-01-10", "start_time": "11:00", "end_time": "10:00"}, headers=auth("prov-1")
    )
    assert backwards.status_code == 400

    not_provider = client.post(
        "/slots", json={"date": "2024-01-10", "start_time": "11:00", "end_time": "12:00"}, headers=auth("seek-1")
    )
    assert not_provider.status_code == 403

    assert client.delete(f"/slots/{slot['id']}", headers=auth("seek-1")).status_code == 403
    assert client.delete(f"/slots/{slot['id']}", headers=auth("prov-1")).status_code == 200
    assert client.delete(f"/slots/{slot['id']}", headers=auth("prov-1")).status_code == 404
    assert client.get("/slots", params={"provider_id": "prov-1"}).json()["slots"] == []


def test_booked_slot_cannot_be_deleted(client, marketplace, book, auth):
    assert book().status_code == 200
    r = client.delete("/slots/slot-1", headers=auth("prov-1"))
    assert r.status_code == 409


def test_list_slots_filters(client, marketplace, make_slot, book):
    make_slot("slot-2", provider_id="prov-1", day=date(2024, 1, 10), start=time(11, 0), end=time(12, 0))
    make_slot("slot-3", provider_id="prov-1", day=date(2024, 1, 11))
    assert book().status_code == 200

    all_slots = client.get("/slots", params={"provider_id": "prov-1"}).json()["slots"]
    assert [s["id"] for s in all_slots] == ["slot-1", "slot-2", "slot-3"]

    open_slots = client.get("/slots", params={"available": "true"}).json()["slots"]
    assert [s["id"] for s in open_slots] == ["slot-2", "slot-3"]

    that_day = client.get("/slots", params={"date": "2024-01-10"}).json()["slots"]
    assert [s["id"] for s in that_day] == ["slot-1", "slot-2"]


def test_slot_with_cancelled_booking_is_kept(client, test_db_session, marketplace, book, auth):
    booking_id = book().json()["booking"]["id"]
    r = client.patch(f"/bookings/{booking_id}", json={"status": "cancelled"}, headers=auth("seek-1"))
    assert r.status_code == 200

    r = client.delete("/slots/slot-1", headers=auth("prov-1"))
    assert r.status_code == 409
    assert r.json() == {"error": "Slot has booking history"}

    slot = test_db_session.get(AvailabilitySlot, "slot-1")
    assert slot is not None
    assert slot.is_available is True
    # Still bookable after the refused delete
    assert book("seek-2").status_code == 200
