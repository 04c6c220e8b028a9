"""Response shapes for the JSON API."""

from datetime import date as date_type, datetime, time as time_type
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserOut(ORMModel):
    id: str
    name: str
    email: str
    role: str
    current_mode: Optional[str] = None
    status: str
    bio: Optional[str] = None
    location: Optional[str] = None


class SkillOut(ORMModel):
    id: str
    user_id: str
    skill_name: str
    category: str
    intent: str
    description: Optional[str] = None


class SlotOut(ORMModel):
    id: str
    provider_id: str
    date: date_type
    start_time: time_type
    end_time: time_type
    is_available: bool


class BookingOut(ORMModel):
    id: str
    seeker_id: str
    provider_id: str
    slot_id: str
    service_name: str
    notes: Optional[str] = None
    status: str
    payment_status: str
    payment_amount: Optional[float] = None
    is_skill_swap: bool
    offered_skill_id: Optional[str] = None
    slot: Optional[SlotOut] = None
    created_at: Optional[datetime] = None


class ReviewOut(ORMModel):
    id: str
    booking_id: str
    reviewer_id: str
    reviewee_id: str
    provider_id: str
    seeker_id: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None


class MessageOut(ORMModel):
    id: int
    sender_id: str
    recipient_id: str
    content: str
    is_read: bool
    created_at: Optional[datetime] = None


class FlagOut(ORMModel):
    id: str
    type: str
    item_id: str
    reason: str
    status: str
    created_by: str
    resolved_by: Optional[str] = None
    created_at: Optional[datetime] = None
