from sqlalchemy import func

from routers import seed as seed_router
from skilllink.models import AdminFlag, AvailabilitySlot, Booking, Message, Review, Skill, User
from skilllink.reviews import ReviewGate


def test_seed_endpoint_builds_demo_graph(client, test_db_session):
    r = client.post("/seed")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    result = body["result"]
    assert result["createdUsers"] == 5
    assert len(result["results"]["slots"]) == 8
    assert len(result["results"]["bookings"]) == 3
    assert len(result["results"]["reviews"]) == 2

    assert test_db_session.query(User).count() == 5
    assert test_db_session.query(Skill).count() == 8
    assert test_db_session.query(Message).count() == 4
    assert test_db_session.query(AdminFlag).filter(AdminFlag.status == "pending").count() == 1

    statuses = sorted(b.status for b in test_db_session.query(Booking).all())
    assert statuses == ["completed", "confirmed", "pending"]


def test_seeded_data_keeps_slots_and_reviews_consistent(client, test_db_session):
    assert client.get("/seed").status_code == 200

    for slot in test_db_session.query(AvailabilitySlot).all():
        active = (
            test_db_session.query(Booking)
            .filter(Booking.slot_id == slot.id, Booking.status != "cancelled")
            .count()
        )
        assert active == (0 if slot.is_available else 1)

    for booking in test_db_session.query(Booking).all():
        assert test_db_session.get(AvailabilitySlot, booking.slot_id).provider_id == booking.provider_id

    for review in test_db_session.query(Review).all():
        booking = test_db_session.get(Booking, review.booking_id)
        assert booking.status == "completed"
        assert review.reviewee_id != review.reviewer_id
        assert {review.reviewer_id, review.reviewee_id} == {booking.provider_id, booking.seeker_id}

    dupes = (
        test_db_session.query(Review.booking_id, Review.reviewer_id, func.count(Review.id))
        .group_by(Review.booking_id, Review.reviewer_id)
        .having(func.count(Review.id) > 1)
        .all()
    )
    assert dupes == []


def test_seed_twice_is_skipped(client, test_db_session):
    assert client.post("/seed").status_code == 200
    r = client.post("/seed")
    assert r.status_code == 200
    assert r.json()["result"]["skipped"] is True
    assert test_db_session.query(User).count() == 5


def test_seed_disabled_reports_500(client, monkeypatch):
    monkeypatch.setattr(seed_router.config, "SEED_ENABLED", False)
    r = client.post("/seed")
    assert r.status_code == 500
    assert r.json()["error"] == "Seeding is disabled"


def test_seed_failure_reports_500(client, monkeypatch):
    def explode(db):
        raise RuntimeError("boom")

    monkeypatch.setattr(seed_router, "seed_database", explode)
    r = client.get("/seed")
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to seed database", "message": "boom"}


def test_seed_failing_midway_leaves_nothing_behind(client, test_db_session, monkeypatch):
    def refuse(self, *args, **kwargs):
        raise RuntimeError("review store offline")

    monkeypatch.setattr(ReviewGate, "submit", refuse)
    r = client.post("/seed")
    assert r.status_code == 500
    assert r.json()["message"] == "review store offline"

    for model in (User, Skill, AvailabilitySlot, Booking):
        assert test_db_session.query(model).count() == 0

    monkeypatch.undo()
    r = client.post("/seed")
    assert r.status_code == 200
    assert r.json()["result"]["skipped"] is False
    assert test_db_session.query(User).count() == 5
    assert test_db_session.query(Review).count() == 2
    assert test_db_session.query(Message).count() == 4
    assert test_db_session.query(AdminFlag).count() == 1
