import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from skilllink.db import get_db
from skilllink.errors import Forbidden, Unauthorized
from skilllink.models import User

logger = logging.getLogger(__name__)


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the caller from the X-User-Id header.

    Session handling belongs to the hosted auth service in front of this API;
    by the time a request gets here it carries the authenticated user id.
    """
    if not x_user_id:
        raise Unauthorized()
    user = db.get(User, x_user_id)
    if user is None:
        logger.warning(f"Request with unknown user id {x_user_id}")
        raise Unauthorized()
    if user.status == "suspended":
        raise Forbidden("Account suspended")
    return user
