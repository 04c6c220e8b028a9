import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from skilllink.errors import (
    AlreadyReviewed, Forbidden, InvalidRating, NotCompleted, NotFound, UpstreamFailure,
)
from skilllink.models import Booking, Review, User

logger = logging.getLogger(__name__)


class ReviewGate:
    """One review per participant per completed booking."""

    def __init__(self, db: Session):
        self.db = db

    def _existing(self, booking_id: str, reviewer_id: str) -> Optional[Review]:
        return (
            self.db.query(Review)
            .filter(Review.booking_id == booking_id, Review.reviewer_id == reviewer_id)
            .first()
        )

    def can_review(self, booking_id: str, reviewer_id: str) -> bool:
        booking = self.db.get(Booking, booking_id)
        if booking is None or booking.status != "completed":
            return False
        if not booking.involves(reviewer_id):
            return False
        return self._existing(booking_id, reviewer_id) is None

    def submit(self, booking_id: str, reviewer: User, rating, comment: Optional[str] = None) -> Review:
        """
        Record a review of the other participant.

        The reviewee is whichever side of the booking the reviewer is not;
        callers cannot name it.
        """
        if not booking_id or isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvalidRating()

        booking = self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking not found")
        if booking.status != "completed":
            raise NotCompleted()
        if not booking.involves(reviewer.id):
            logger.warning(f"User {reviewer.id} tried to review booking {booking_id} they are not part of")
            raise Forbidden("Unauthorized")
        if self._existing(booking_id, reviewer.id):
            raise AlreadyReviewed()

        reviewee_id = booking.seeker_id if reviewer.id == booking.provider_id else booking.provider_id
        review = Review(
            booking_id=booking_id,
            reviewer_id=reviewer.id,
            reviewee_id=reviewee_id,
            provider_id=booking.provider_id,
            seeker_id=booking.seeker_id,
            rating=rating,
            comment=comment,
        )
        self.db.add(review)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against the same reviewer; the unique key caught it
            self.db.rollback()
            raise AlreadyReviewed()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to create review for booking {booking_id}: {e}")
            raise UpstreamFailure("Failed to create review") from e

        self.db.refresh(review)
        logger.info(f"Review {review.id} on booking {booking_id}: {reviewer.id} -> {reviewee_id} ({rating})")
        return review

    def list_for_user(self, user_id: str) -> tuple[list[Review], Optional[float]]:
        reviews = (
            self.db.query(Review)
            .filter(Review.reviewee_id == user_id)
            .order_by(Review.created_at.desc())
            .all()
        )
        average = self.db.query(func.avg(Review.rating)).filter(Review.reviewee_id == user_id).scalar()
        return reviews, (round(float(average), 2) if average is not None else None)
