import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Integer,
    String, Text, Time, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from skilllink.db import Base

USER_ROLES = ("provider", "seeker", "both", "admin")
USER_MODES = ("provider", "seeker")
USER_STATUSES = ("active", "suspended")
SKILL_INTENTS = ("provider", "seeker")
BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "refunded")
FLAG_TYPES = ("user", "review", "booking")
FLAG_STATUSES = ("pending", "resolved", "dismissed")


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def _in(column, values):
    quoted = ",".join(f"'{v}'" for v in values)
    return f"{column} in ({quoted})"


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    role = Column(String, nullable=False, default="seeker")
    current_mode = Column(String)  # only meaningful when role == 'both'
    status = Column(String, nullable=False, default="active")
    bio = Column(Text)
    location = Column(String)
    created_at = Column(DateTime, default=utcnow)

    skills = relationship("Skill", back_populates="user", order_by="Skill.created_at")

    __table_args__ = (
        CheckConstraint(_in("role", USER_ROLES), name="user_role_valid"),
        CheckConstraint(_in("status", USER_STATUSES), name="user_status_valid"),
    )

    @property
    def can_provide(self):
        return self.role in ("provider", "both")


class Skill(Base):
    __tablename__ = "skills"
    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_name = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    intent = Column(String, nullable=False)  # provider = offered, seeker = wanted
    description = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="skills")

    __table_args__ = (
        CheckConstraint(_in("intent", SKILL_INTENTS), name="skill_intent_valid"),
    )


class AvailabilitySlot(Base):
    __tablename__ = "availability_slots"
    id = Column(String, primary_key=True, default=new_id)
    provider_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="slot_time_valid"),
        UniqueConstraint("provider_id", "date", "start_time", "end_time", name="uniq_provider_slot_window"),
    )


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(String, primary_key=True, default=new_id)
    seeker_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    slot_id = Column(String, ForeignKey("availability_slots.id"), nullable=False, index=True)
    service_name = Column(String, nullable=False)
    notes = Column(Text)
    status = Column(String, nullable=False, default="pending")
    payment_status = Column(String, nullable=False, default="pending")
    payment_amount = Column(Float)
    is_skill_swap = Column(Boolean, nullable=False, default=False)
    offered_skill_id = Column(String, ForeignKey("skills.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    slot = relationship("AvailabilitySlot", lazy="joined")

    __table_args__ = (
        CheckConstraint(_in("status", BOOKING_STATUSES), name="booking_status_valid"),
        CheckConstraint(_in("payment_status", PAYMENT_STATUSES), name="booking_payment_status_valid"),
    )

    def involves(self, user_id):
        return user_id in (self.provider_id, self.seeker_id)


class Review(Base):
    __tablename__ = "reviews"
    id = Column(String, primary_key=True, default=new_id)
    booking_id = Column(String, ForeignKey("bookings.id"), nullable=False, index=True)
    reviewer_id = Column(String, ForeignKey("users.id"), nullable=False)
    reviewee_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(String, ForeignKey("users.id"), nullable=False)
    seeker_id = Column(String, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="review_rating_range"),
        UniqueConstraint("booking_id", "reviewer_id", name="uniq_review_per_reviewer"),
    )


class Message(Base):
    __tablename__ = "messages"
    # Integer key: conversation order is insertion order
    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    recipient_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)


class AdminFlag(Base):
    __tablename__ = "admin_flags"
    id = Column(String, primary_key=True, default=new_id)
    type = Column(String, nullable=False)
    item_id = Column(String, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_by = Column(String, ForeignKey("users.id"), nullable=False)
    resolved_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint(_in("type", FLAG_TYPES), name="flag_type_valid"),
        CheckConstraint(_in("status", FLAG_STATUSES), name="flag_status_valid"),
    )
