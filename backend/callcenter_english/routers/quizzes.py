from collections import Counter
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import QuizResult, User
from ..schemas import CamelModel, QuizResultOut, dump, dump_all
from .auth import get_current_user

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


class QuizSubmitRequest(CamelModel):
	quiz_type: str = Field(min_length=1, max_length=64)
	total_questions: int
	correct_answers: int
	time_spent_seconds: Optional[int] = Field(default=None, ge=0)


def quiz_score(correct_answers: int, total_questions: int) -> float:
	if total_questions <= 0:
		raise ValueError("total_questions must be positive")
	return correct_answers / total_questions * 100


@router.get("")
async def list_results(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	results = (
		db.query(QuizResult)
		.filter(QuizResult.user_id == user.id)
		.order_by(QuizResult.completed_at.desc(), QuizResult.id.desc())
		.all()
	)
	return {"message": "Quiz results retrieved", "quizzes": dump_all(QuizResultOut, results)}


@router.get("/stats")
async def stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	results = db.query(QuizResult).filter(QuizResult.user_id == user.id).all()
	average = sum(float(r.score) for r in results) / len(results) if results else 0.0
	return {
		"message": "Quiz statistics retrieved",
		"stats": {
			"totalQuizzes": len(results),
			"averageScore": round(average, 2),
			"quizzesByType": dict(Counter(r.quiz_type for r in results)),
		},
	}


@router.post("/{quiz_id}/submit")
async def submit(quiz_id: str, req: QuizSubmitRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	if req.total_questions < 1:
		raise HTTPException(status_code=400, detail="totalQuestions must be at least 1")
	if not 0 <= req.correct_answers <= req.total_questions:
		raise HTTPException(status_code=400, detail="correctAnswers must be between 0 and totalQuestions")
	score = quiz_score(req.correct_answers, req.total_questions)
	result = QuizResult(
		user_id=user.id,
		quiz_type=req.quiz_type,
		score=score,
		total_questions=req.total_questions,
		correct_answers=req.correct_answers,
		time_spent_seconds=req.time_spent_seconds,
	)
	db.add(result)
	db.commit()
	db.refresh(result)
	return {"message": "Quiz submitted", "quizId": quiz_id, "result": dump(QuizResultOut, result), "score": score}
