from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skilllink.auth import get_current_user
from skilllink.db import get_db
from skilllink.models import User
from skilllink.schemas import SkillOut, UserOut
from skilllink.users import UserService

router = APIRouter()


class RegisterBody(BaseModel):
    name: str
    email: str
    role: str = "seeker"
    bio: Optional[str] = None
    location: Optional[str] = None


class ModeBody(BaseModel):
    mode: str


@router.post("", status_code=201)
def register(body: RegisterBody, db: Session = Depends(get_db)):
    user = UserService(db).register(body.name, body.email, body.role, body.bio, body.location)
    return {"user": UserOut.model_validate(user)}


@router.patch("/me/mode")
def switch_mode(body: ModeBody, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"user": UserOut.model_validate(UserService(db).set_mode(user, body.mode))}


@router.get("/{user_id}")
def get_profile(user_id: str, db: Session = Depends(get_db)):
    user = UserService(db).get(user_id)
    return {
        "user": UserOut.model_validate(user),
        "skills": {
            "offered": [SkillOut.model_validate(s) for s in user.skills if s.intent == "provider"],
            "wanted": [SkillOut.model_validate(s) for s in user.skills if s.intent == "seeker"],
        },
    }
