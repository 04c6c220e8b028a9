from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skilllink.auth import get_current_user
from skilllink.db import get_db
from skilllink.models import User
from skilllink.schemas import SkillOut
from skilllink.skills import SKILL_CATEGORIES, SkillService

router = APIRouter()


class CreateSkillBody(BaseModel):
    skill_name: str
    category: str
    intent: str
    description: Optional[str] = None


@router.get("")
def list_skills(
    category: Optional[str] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    skills = SkillService(db).list(category=category, user_id=user_id)
    return {"skills": [SkillOut.model_validate(s) for s in skills]}


@router.get("/categories")
def list_categories():
    return {"categories": SKILL_CATEGORIES}


@router.post("", status_code=201)
def add_skill(body: CreateSkillBody, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    skill = SkillService(db).add(user, body.skill_name, body.category, body.intent, body.description)
    return {"skill": SkillOut.model_validate(skill)}


@router.delete("/{skill_id}")
def delete_skill(skill_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    SkillService(db).delete(user, skill_id)
    return {"ok": True, "skill_id": skill_id}
