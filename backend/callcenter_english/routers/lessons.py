from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Lesson, User, UserLessonProgress
from ..schemas import CamelModel, LessonOut, LessonProgressOut, dump, dump_all
from .auth import get_current_user
from .progress import get_progress_row

router = APIRouter(prefix="/lessons", tags=["lessons"])


class CompleteLessonRequest(CamelModel):
	time_spent_seconds: Optional[int] = Field(default=None, ge=0)
	score: Optional[float] = Field(default=None, ge=0, le=100)


def get_lesson_or_404(db: Session, lesson_id: int) -> Lesson:
	lesson = db.get(Lesson, lesson_id)
	if lesson is None:
		raise HTTPException(status_code=404, detail="Lesson not found")
	return lesson


def _lesson_progress(db: Session, user_id: int, lesson_id: int) -> Optional[UserLessonProgress]:
	return (
		db.query(UserLessonProgress)
		.filter(UserLessonProgress.user_id == user_id, UserLessonProgress.lesson_id == lesson_id)
		.first()
	)


@router.get("")
async def list_lessons(
	module: Optional[int] = Query(default=None, ge=1),
	week: Optional[int] = Query(default=None, ge=1),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	query = db.query(Lesson)
	if module is not None:
		query = query.filter(Lesson.module == module)
	if week is not None:
		query = query.filter(Lesson.week == week)
	lessons = query.order_by(Lesson.module, Lesson.week, Lesson.day, Lesson.id).all()
	return {"message": "Lessons retrieved", "lessons": dump_all(LessonOut, lessons)}


@router.get("/{lesson_id}")
async def get_lesson(lesson_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	lesson = get_lesson_or_404(db, lesson_id)
	return {"message": "Lesson retrieved", "lesson": dump(LessonOut, lesson)}


@router.get("/{lesson_id}/progress")
async def get_lesson_progress(lesson_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	progress = _lesson_progress(db, user.id, lesson_id)
	if progress is None:
		raise HTTPException(status_code=404, detail="Progress not found")
	return {"message": "Lesson progress retrieved", "progress": dump(LessonProgressOut, progress)}


@router.post("/{lesson_id}/complete")
async def complete_lesson(
	lesson_id: int,
	req: Optional[CompleteLessonRequest] = None,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	req = req or CompleteLessonRequest()
	get_lesson_or_404(db, lesson_id)
	progress = _lesson_progress(db, user.id, lesson_id)
	if progress is None:
		progress = UserLessonProgress(user_id=user.id, lesson_id=lesson_id, time_spent_seconds=0)
	progress.completed = True
	progress.completed_at = datetime.utcnow()
	# Keep previous values when the client does not send new ones
	if req.time_spent_seconds:
		progress.time_spent_seconds = req.time_spent_seconds
	if req.score is not None:
		progress.score = req.score
	db.add(progress)

	course = get_progress_row(db, user.id)
	if course is not None and req.time_spent_seconds:
		course.total_hours_completed = round(float(course.total_hours_completed or 0) + req.time_spent_seconds / 3600, 2)
		db.add(course)

	db.commit()
	db.refresh(progress)
	return {"message": "Lesson marked as complete", "progress": dump(LessonProgressOut, progress)}
