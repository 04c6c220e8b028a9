import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from skilllink.errors import Conflict, InvalidInput, NotFound
from skilllink.models import USER_MODES, USER_ROLES, User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def register(
        self,
        name: str,
        email: str,
        role: str = "seeker",
        bio: Optional[str] = None,
        location: Optional[str] = None,
    ) -> User:
        """Create the profile row for a freshly signed-up account."""
        if role not in USER_ROLES:
            raise InvalidInput(f"Unknown role '{role}'")
        email = email.strip().lower()
        if self.db.query(User).filter(User.email == email).first():
            raise Conflict("Email already registered")

        user = User(
            name=name,
            email=email,
            role=role,
            # A dual-role user starts out browsing as a seeker
            current_mode="seeker" if role == "both" else None,
            status="active",
            bio=bio,
            location=location,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Email already registered")
        self.db.refresh(user)
        logger.info(f"Registered user {user.id} ({role})")
        return user

    def get(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def set_mode(self, user: User, mode: str) -> User:
        if user.role != "both":
            raise InvalidInput("Only users with both roles can switch mode")
        if mode not in USER_MODES:
            raise InvalidInput(f"Unknown mode '{mode}'")
        user.current_mode = mode
        self.db.commit()
        self.db.refresh(user)
        return user
