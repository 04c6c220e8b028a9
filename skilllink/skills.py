import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skilllink.errors import Forbidden, InvalidInput, NotFound
from skilllink.models import SKILL_INTENTS, Skill, User

logger = logging.getLogger(__name__)

SKILL_CATEGORIES = {
    "Technology": ["Web Development", "Mobile App Development", "Data Science", "Machine Learning", "Cybersecurity"],
    "Design": ["Graphic Design", "UI/UX Design", "Interior Design", "Fashion Design", "Logo Design"],
    "Music": ["Guitar Lessons", "Piano Lessons", "Vocal Training", "Music Production", "DJ Skills"],
    "Cooking": ["Baking", "Italian Cuisine", "Vegan Cooking", "Pastry Making", "BBQ Techniques"],
    "Fitness": ["Yoga", "Personal Training", "Nutrition Advice", "Meditation", "CrossFit"],
    "Languages": ["English Tutoring", "Spanish Lessons", "French Lessons", "Mandarin Chinese", "Japanese"],
    "Academic": ["Math Tutoring", "Science Help", "Essay Writing", "History Lessons", "Test Preparation"],
    "Arts & Crafts": ["Painting", "Pottery", "Knitting", "Photography", "Jewelry Making"],
    "Business": ["Marketing Strategy", "Financial Planning", "Public Speaking", "Resume Writing", "Sales Techniques"],
    "Home Improvement": ["Carpentry", "Plumbing", "Electrical Work", "Gardening", "Interior Decoration"],
}


class SkillService:
    def __init__(self, db: Session):
        self.db = db

    def list(self, category: Optional[str] = None, user_id: Optional[str] = None) -> list[Skill]:
        query = self.db.query(Skill)
        if category:
            query = query.filter(Skill.category == category)
        if user_id:
            query = query.filter(Skill.user_id == user_id)
        try:
            return query.order_by(Skill.created_at.asc()).all()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to fetch skills: {e}")
            raise InvalidInput("Failed to fetch skills") from e

    def add(
        self, owner: User, skill_name: str, category: str, intent: str, description: Optional[str] = None
    ) -> Skill:
        if intent not in SKILL_INTENTS:
            raise InvalidInput("intent must be 'provider' or 'seeker'")
        if not skill_name.strip() or not category.strip():
            raise InvalidInput("skill_name and category are required")
        skill = Skill(
            user_id=owner.id,
            skill_name=skill_name.strip(),
            category=category.strip(),
            intent=intent,
            description=description,
        )
        self.db.add(skill)
        self.db.commit()
        self.db.refresh(skill)
        logger.info(f"User {owner.id} listed skill {skill.skill_name} ({intent})")
        return skill

    def delete(self, owner: User, skill_id: str) -> None:
        skill = self.db.get(Skill, skill_id)
        if skill is None:
            raise NotFound("Skill not found")
        if skill.user_id != owner.id:
            raise Forbidden("You can only delete your own skills")
        self.db.delete(skill)
        self.db.commit()
