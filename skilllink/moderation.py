import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from skilllink.errors import Forbidden, InvalidInput, InvalidTransition, NotFound
from skilllink.models import FLAG_STATUSES, FLAG_TYPES, AdminFlag, Booking, Review, User

logger = logging.getLogger(__name__)

FLAGGABLE = {"user": User, "review": Review, "booking": Booking}


def require_admin(user: User) -> None:
    if user.role != "admin":
        raise Forbidden("Admin access required")


class ModerationService:
    def __init__(self, db: Session):
        self.db = db

    def raise_flag(self, reporter: User, flag_type: str, item_id: str, reason: str) -> AdminFlag:
        if flag_type not in FLAG_TYPES:
            raise InvalidInput(f"Unknown flag type '{flag_type}'")
        if not reason or not reason.strip():
            raise InvalidInput("A reason is required")
        if self.db.get(FLAGGABLE[flag_type], item_id) is None:
            raise NotFound(f"Flagged {flag_type} not found")

        flag = AdminFlag(type=flag_type, item_id=item_id, reason=reason.strip(), status="pending", created_by=reporter.id)
        self.db.add(flag)
        self.db.commit()
        self.db.refresh(flag)
        logger.info(f"User {reporter.id} flagged {flag_type} {item_id}")
        return flag

    def list_flags(self, admin: User, status: Optional[str] = None) -> list[AdminFlag]:
        require_admin(admin)
        query = self.db.query(AdminFlag)
        if status:
            if status not in FLAG_STATUSES:
                raise InvalidInput(f"Unknown flag status '{status}'")
            query = query.filter(AdminFlag.status == status)
        return query.order_by(AdminFlag.created_at.desc()).all()

    def settle_flag(self, admin: User, flag_id: str, status: str) -> AdminFlag:
        """Resolve or dismiss a pending flag. Settled flags never reopen."""
        require_admin(admin)
        if status not in ("resolved", "dismissed"):
            raise InvalidInput("status must be 'resolved' or 'dismissed'")
        flag = self.db.get(AdminFlag, flag_id)
        if flag is None:
            raise NotFound("Flag not found")

        res = self.db.execute(
            update(AdminFlag)
            .where(AdminFlag.id == flag_id, AdminFlag.status == "pending")
            .values(status=status, resolved_by=admin.id)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            self.db.rollback()
            raise InvalidTransition(f"Flag is already {flag.status}")
        self.db.commit()
        self.db.refresh(flag)
        logger.info(f"Admin {admin.id} marked flag {flag_id} {status}")
        return flag

    def suspend_user(self, admin: User, user_id: str) -> User:
        require_admin(admin)
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        if user.id == admin.id:
            raise InvalidInput("Admins cannot suspend themselves")
        user.status = "suspended"
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Admin {admin.id} suspended user {user_id}")
        return user
