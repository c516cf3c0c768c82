from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User, UserProgress
from ..schemas import CamelModel, ProgressOut, UserOut, dump
from .auth import get_current_user

router = APIRouter(prefix="/users", tags=["users"])

COURSE_LENGTH_DAYS = 90


class ProfileUpdateRequest(CamelModel):
	first_name: Optional[str] = Field(default=None, max_length=128)
	last_name: Optional[str] = Field(default=None, max_length=128)


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
	return {"message": "User profile retrieved", "user": dump(UserOut, user)}


@router.put("/profile")
async def update_profile(req: ProfileUpdateRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	# Blank values leave the stored name untouched
	if req.first_name and req.first_name.strip():
		user.first_name = req.first_name.strip()
	if req.last_name and req.last_name.strip():
		user.last_name = req.last_name.strip()
	user.updated_at = datetime.utcnow()
	db.add(user)
	db.commit()
	db.refresh(user)
	return {"message": "User profile updated", "user": dump(UserOut, user)}


@router.post("/initialize-progress", status_code=201)
async def initialize_progress(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	existing = db.query(UserProgress).filter(UserProgress.user_id == user.id).first()
	if existing:
		raise HTTPException(status_code=400, detail="Progress already initialized")
	now = datetime.utcnow()
	progress = UserProgress(
		user_id=user.id,
		current_module=1,
		current_week=1,
		overall_mastery_score=0.0,
		total_hours_completed=0.0,
		start_date=now,
		expected_completion_date=now + timedelta(days=COURSE_LENGTH_DAYS),
	)
	db.add(progress)
	db.commit()
	db.refresh(progress)
	return {"message": "User progress initialized", "progress": dump(ProgressOut, progress)}
