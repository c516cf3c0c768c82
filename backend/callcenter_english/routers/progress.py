from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import feedback as ai_feedback
from ..db import get_db
from ..models import SkillMastery, User, UserProgress
from ..schemas import CamelModel, ProgressOut, SkillOut, dump, dump_all
from .auth import get_current_user

router = APIRouter(prefix="/progress", tags=["progress"])
logger = logging.getLogger(__name__)

# Skills below this mastery are reported as weak when asking for recommendations
WEAK_SKILL_THRESHOLD = 70.0


class ProgressUpdateRequest(CamelModel):
	current_module: Optional[int] = Field(default=None, ge=1, le=3)
	current_week: Optional[int] = Field(default=None, ge=1, le=4)
	overall_mastery_score: Optional[float] = Field(default=None, ge=0, le=100)
	total_hours_completed: Optional[float] = Field(default=None, ge=0)


class SkillUpdateRequest(CamelModel):
	skill_name: str = Field(min_length=1, max_length=128)
	skill_category: str = Field(min_length=1, max_length=64)
	mastery_score: float = Field(ge=0, le=100)


def get_progress_row(db: Session, user_id: int) -> Optional[UserProgress]:
	return db.query(UserProgress).filter(UserProgress.user_id == user_id).first()


def _require_progress(db: Session, user_id: int) -> UserProgress:
	progress = get_progress_row(db, user_id)
	if progress is None:
		raise HTTPException(status_code=404, detail="Progress not found")
	return progress


def recompute_mastery(db: Session, user_id: int) -> None:
	"""Set the overall mastery score to the mean of the user's skill scores."""
	progress = get_progress_row(db, user_id)
	if progress is None:
		return
	mean = db.query(func.avg(SkillMastery.mastery_score)).filter(SkillMastery.user_id == user_id).scalar()
	progress.overall_mastery_score = round(float(mean or 0.0), 2)
	db.add(progress)


@router.get("")
async def get_progress(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	progress = _require_progress(db, user.id)
	return {"message": "User progress data retrieved", "progress": dump(ProgressOut, progress)}


@router.put("")
async def update_progress(req: ProgressUpdateRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	progress = _require_progress(db, user.id)
	for field, value in req.model_dump(exclude_none=True).items():
		setattr(progress, field, value)
	progress.updated_at = datetime.utcnow()
	db.add(progress)
	db.commit()
	db.refresh(progress)
	return {"message": "User progress updated", "progress": dump(ProgressOut, progress)}


@router.get("/skills")
async def get_skills(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	skills = db.query(SkillMastery).filter(SkillMastery.user_id == user.id).order_by(SkillMastery.id).all()
	return {"message": "Skill mastery data retrieved", "skills": dump_all(SkillOut, skills)}


@router.post("/skills")
async def update_skill(req: SkillUpdateRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	now = datetime.utcnow()
	skill = (
		db.query(SkillMastery)
		.filter(SkillMastery.user_id == user.id, SkillMastery.skill_name == req.skill_name)
		.first()
	)
	if skill is None:
		skill = SkillMastery(
			user_id=user.id,
			skill_name=req.skill_name,
			skill_category=req.skill_category,
			practice_count=0,
		)
	# Latest submitted value wins; no averaging
	skill.mastery_score = req.mastery_score
	skill.practice_count = (skill.practice_count or 0) + 1
	skill.last_practiced_at = now
	db.add(skill)
	db.flush()
	recompute_mastery(db, user.id)
	db.commit()
	db.refresh(skill)
	return {"message": "Skill mastery updated", "skill": dump(SkillOut, skill)}


@router.get("/recommendations")
async def get_recommendations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	progress = _require_progress(db, user.id)
	weak: List[str] = [
		s.skill_name
		for s in db.query(SkillMastery)
		.filter(SkillMastery.user_id == user.id, SkillMastery.mastery_score < WEAK_SKILL_THRESHOLD)
		.order_by(SkillMastery.mastery_score)
		.all()
	]
	try:
		recommendations = await ai_feedback.generate_learning_recommendations(dump(ProgressOut, progress), weak)
	except Exception:
		logger.warning("Recommendation generation failed, using default recommendations", exc_info=True)
		recommendations = ai_feedback.defaults(ai_feedback.DEFAULT_RECOMMENDATIONS)
	return {
		"message": "Learning recommendations generated",
		"weakSkills": weak,
		"recommendations": recommendations,
	}
