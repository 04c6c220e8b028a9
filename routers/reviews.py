from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skilllink.auth import get_current_user
from skilllink.db import get_db
from skilllink.models import User
from skilllink.reviews import ReviewGate
from skilllink.schemas import ReviewOut

router = APIRouter()


class CreateReviewBody(BaseModel):
    # Loosely typed so that a missing or malformed value is reported as 400 by the gate
    booking_id: Optional[str] = None
    rating: Optional[Any] = None
    comment: Optional[str] = None


@router.post("")
def create_review(body: CreateReviewBody, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    review = ReviewGate(db).submit(body.booking_id, user, body.rating, body.comment)
    return {"review": ReviewOut.model_validate(review)}


@router.get("")
def list_reviews(user_id: str = Query(...), db: Session = Depends(get_db)):
    """Reviews a user has received, newest first, with their average rating."""
    reviews, average = ReviewGate(db).list_for_user(user_id)
    return {"reviews": [ReviewOut.model_validate(r) for r in reviews], "average_rating": average}


@router.get("/eligibility/{booking_id}")
def review_eligibility(booking_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"booking_id": booking_id, "can_review": ReviewGate(db).can_review(booking_id, user.id)}
