from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import AssessmentResult, Certification, User
from ..schemas import AssessmentResultOut, CamelModel, CertificationOut, dump, dump_all
from .auth import get_current_user
from .progress import get_progress_row

router = APIRouter(prefix="/assessments", tags=["assessments"])
logger = logging.getLogger(__name__)

FINAL_MODULE = 3
FINAL_WEEK = 4
CERTIFICATION_VALID_YEARS = 2


class AssessmentSubmitRequest(CamelModel):
	assessment_type: str = Field(min_length=1, max_length=64)
	score: float = Field(ge=0, le=100)
	passing_score: float = Field(ge=0, le=100)
	feedback: Optional[str] = None


class IssueCertificationRequest(CamelModel):
	certification_level: str = Field(default="B2", min_length=1, max_length=8)


def add_years(moment: datetime, years: int) -> datetime:
	try:
		return moment.replace(year=moment.year + years)
	except ValueError:
		# 29 February in a non-leap target year
		return moment.replace(year=moment.year + years, day=28)


@router.get("/status")
async def status(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	progress = get_progress_row(db, user.id)
	can_take = progress is not None and progress.current_module == FINAL_MODULE and progress.current_week == FINAL_WEEK
	completed = (
		db.query(AssessmentResult)
		.filter(AssessmentResult.user_id == user.id)
		.order_by(AssessmentResult.id)
		.all()
	)
	return {
		"message": "Assessment status retrieved",
		"canTakeAssessment": can_take,
		"completedAssessments": dump_all(AssessmentResultOut, completed),
	}


@router.post("/{assessment_id}/submit")
async def submit(
	assessment_id: str,
	req: AssessmentSubmitRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	passed = req.score >= req.passing_score
	result = AssessmentResult(
		user_id=user.id,
		assessment_type=req.assessment_type,
		score=req.score,
		passing_score=req.passing_score,
		passed=passed,
		feedback=req.feedback,
	)
	db.add(result)
	db.commit()
	db.refresh(result)
	return {
		"message": "Assessment submitted",
		"assessmentId": assessment_id,
		"result": dump(AssessmentResultOut, result),
		"passed": passed,
	}


@router.get("/certification")
async def get_certification(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	cert = db.query(Certification).filter(Certification.user_id == user.id).first()
	if cert is None:
		raise HTTPException(status_code=404, detail="No certification found")
	return {"message": "Certification retrieved", "certification": dump(CertificationOut, cert)}


@router.post("/certification/issue")
async def issue_certification(
	req: Optional[IssueCertificationRequest] = None,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	req = req or IssueCertificationRequest()
	level = req.certification_level.strip().upper()
	issued = datetime.utcnow()
	cert = Certification(
		user_id=user.id,
		certification_level=level,
		issued_date=issued,
		expiry_date=add_years(issued, CERTIFICATION_VALID_YEARS),
		certificate_url=f"/certificates/{user.id}-{level}.pdf",
	)
	# The unique constraint on user_id decides; no check-then-insert
	db.add(cert)
	try:
		db.commit()
	except IntegrityError:
		db.rollback()
		raise HTTPException(status_code=400, detail="Certification already issued")
	db.refresh(cert)
	logger.info("Issued %s certification to user %s", level, user.id)
	return {"message": "Certification issued", "certification": dump(CertificationOut, cert)}
