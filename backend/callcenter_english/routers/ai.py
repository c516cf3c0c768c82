"""
Speaking practice and AI tutoring endpoints.

The speaking submission is a straight chain of local validation, one
transcription call and one feedback call. Feedback, tutor, quiz and
scenario-evaluation failures are logged and answered with the fixed default
payloads so the request still succeeds; transcription and upload validation
failures are returned to the caller as errors. The uploaded file is always
removed before the response is sent.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import feedback as ai_feedback
from ..db import get_db
from ..models import Scenario, SpeakingSession, User, UserScenarioPractice
from ..schemas import CamelModel, ScenarioAttemptOut, ScenarioOut, SpeakingSessionOut, dump, dump_all
from ..transcription import INVALID_FORMAT_MESSAGE, AudioValidationError, check_audio_file, transcribe_audio, validate_audio_file
from ..uploads import cleanup_file, get_uploads_dir, save_upload, unique_filename
from .auth import get_current_user

router = APIRouter(prefix="/ai", tags=["ai"])
logger = logging.getLogger(__name__)


class StartSessionRequest(CamelModel):
	scenario_type: str = Field(min_length=1, max_length=128)


class ScenarioAttemptRequest(CamelModel):
	user_response: str = Field(min_length=1)


class TutorRequest(CamelModel):
	question: Optional[str] = None
	context: Optional[str] = None


class GenerateQuizRequest(CamelModel):
	category: Optional[str] = None
	difficulty: Optional[str] = None
	count: int = Field(default=5, ge=1, le=20)


def parse_expected_responses(raw: Optional[str]) -> List[str]:
	"""Accept a JSON array or newline-separated text from the form field."""
	if not raw or not raw.strip():
		return []
	try:
		data = json.loads(raw)
	except ValueError:
		data = None
	if isinstance(data, list):
		return [str(item).strip() for item in data if str(item).strip()]
	if isinstance(data, str):
		return [data.strip()] if data.strip() else []
	return [line.strip() for line in raw.splitlines() if line.strip()]


def _scores(result: Dict[str, Any]) -> Dict[str, float]:
	return {
		"fluencyScore": result["fluencyScore"],
		"pronunciationScore": result["pronunciationScore"],
		"grammarScore": result["grammarScore"],
		"culturalNuanceScore": result["culturalNuanceScore"],
		"overallScore": result["overallScore"],
	}


async def _analyze_or_default(transcript: str, scenario_type: str, expected: List[str]) -> Dict[str, Any]:
	try:
		return await ai_feedback.analyze_speaking_session(transcript, scenario_type, expected)
	except Exception:
		logger.warning("Speaking analysis failed, using default feedback", exc_info=True)
		return ai_feedback.defaults(ai_feedback.DEFAULT_SPEAKING_FEEDBACK)


@router.post("/speaking-session")
async def start_speaking_session(req: StartSessionRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	session = SpeakingSession(user_id=user.id, scenario_type=req.scenario_type, duration=0)
	db.add(session)
	db.commit()
	db.refresh(session)
	return {
		"message": "Speaking session started",
		"sessionId": session.id,
		"session": dump(SpeakingSessionOut, session),
	}


@router.post("/speaking-session/{session_id}/submit")
async def submit_speaking_session(
	session_id: int,
	audio: Optional[UploadFile] = File(default=None),
	transcript: Optional[str] = Form(default=None),
	duration: Optional[int] = Form(default=None, ge=0),
	scenario_type_field: Optional[str] = Form(default=None, alias="scenarioType"),
	expected_responses_field: Optional[str] = Form(default=None, alias="expectedResponses"),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	uploaded_path: Optional[Path] = None
	try:
		session = (
			db.query(SpeakingSession)
			.filter(SpeakingSession.id == session_id, SpeakingSession.user_id == user.id)
			.first()
		)
		if session is None:
			raise HTTPException(status_code=404, detail="Session not found")

		scenario_type = (scenario_type_field or "").strip() or session.scenario_type
		expected = parse_expected_responses(expected_responses_field)
		text = ""
		result: Optional[Dict[str, Any]] = None

		if audio is not None and audio.filename:
			uploaded_path = get_uploads_dir() / unique_filename(audio.filename)
			try:
				if not validate_audio_file(uploaded_path):
					raise AudioValidationError(INVALID_FORMAT_MESSAGE)
				await save_upload(audio, uploaded_path)
				check_audio_file(uploaded_path)
			except AudioValidationError as e:
				raise HTTPException(status_code=400, detail=str(e))

			try:
				text = (await transcribe_audio(uploaded_path)).text
			except Exception as e:
				logger.error("Error processing audio for session %s", session_id, exc_info=True)
				raise HTTPException(status_code=500, detail=f"Error processing audio file: {e}")
			result = await _analyze_or_default(text, scenario_type, expected)
		elif transcript and transcript.strip():
			text = transcript.strip()
			result = await _analyze_or_default(text, scenario_type, expected)

		if result is None:
			# Nothing to analyze; scores fall back to the defaults
			result = ai_feedback.defaults(ai_feedback.DEFAULT_SPEAKING_FEEDBACK)

		# Re-submission overwrites the previous scores
		session.duration = duration or 0
		session.fluency_score = result["fluencyScore"]
		session.pronunciation_score = result["pronunciationScore"]
		session.grammar_score = result["grammarScore"]
		session.cultural_nuance_score = result["culturalNuanceScore"]
		session.overall_score = result["overallScore"]
		session.ai_transcript = text
		session.ai_feedback = result["feedback"]
		session.completed_at = datetime.utcnow()
		db.add(session)
		db.commit()
		db.refresh(session)

		return {
			"message": "Speaking response submitted",
			"session": dump(SpeakingSessionOut, session),
			"transcript": text,
			"scores": _scores(result),
			"feedback": result["feedback"],
			"suggestions": result.get("suggestions", []),
		}
	finally:
		if audio is not None:
			await audio.close()
		cleanup_file(uploaded_path)


@router.get("/speaking-sessions")
async def list_speaking_sessions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	sessions = db.query(SpeakingSession).filter(SpeakingSession.user_id == user.id).order_by(SpeakingSession.id).all()
	return {"message": "Speaking sessions retrieved", "sessions": dump_all(SpeakingSessionOut, sessions)}


@router.get("/scenarios")
async def list_scenarios(
	difficulty: Optional[str] = Query(default=None),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	query = db.query(Scenario)
	if difficulty:
		query = query.filter(Scenario.difficulty == difficulty)
	return {"message": "Scenarios retrieved", "scenarios": dump_all(ScenarioOut, query.order_by(Scenario.id).all())}


@router.post("/scenario/{scenario_id}/attempt")
async def attempt_scenario(
	scenario_id: int,
	req: ScenarioAttemptRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	scenario = db.get(Scenario, scenario_id)
	if scenario is None:
		raise HTTPException(status_code=404, detail="Scenario not found")

	previous = (
		db.query(func.count(UserScenarioPractice.id))
		.filter(UserScenarioPractice.user_id == user.id, UserScenarioPractice.scenario_id == scenario_id)
		.scalar()
	)
	try:
		evaluation = await ai_feedback.evaluate_scenario_response(
			req.user_response,
			scenario.scenario_description or "",
			scenario.customer_persona or {},
			scenario.expected_responses or [],
		)
	except Exception:
		logger.warning("Scenario evaluation failed, using default evaluation", exc_info=True)
		evaluation = ai_feedback.defaults(ai_feedback.DEFAULT_SCENARIO_EVALUATION)

	attempt = UserScenarioPractice(
		user_id=user.id,
		scenario_id=scenario_id,
		attempt_number=(previous or 0) + 1,
		user_response=req.user_response,
		ai_evaluation=evaluation,
	)
	db.add(attempt)
	db.commit()
	db.refresh(attempt)
	return {
		"message": "Scenario attempt recorded",
		"attempt": dump(ScenarioAttemptOut, attempt),
		"evaluation": evaluation,
	}


@router.post("/ask-tutor")
async def ask_tutor(req: TutorRequest, user: User = Depends(get_current_user)):
	question = (req.question or "").strip()
	if not question:
		raise HTTPException(status_code=400, detail="Question is required")
	try:
		response = await ai_feedback.generate_tutor_response(question, req.context)
	except Exception:
		logger.warning("Tutor response failed, using default response", exc_info=True)
		response = ai_feedback.defaults(ai_feedback.DEFAULT_TUTOR_RESPONSE)
	return {"message": "AI tutor response", "userId": user.id, "question": question, "response": response}


@router.post("/generate-quiz")
async def generate_quiz(req: GenerateQuizRequest, user: User = Depends(get_current_user)):
	category = (req.category or "").strip()
	difficulty = (req.difficulty or "").strip()
	if not category or not difficulty:
		raise HTTPException(status_code=400, detail="Category and difficulty are required")
	try:
		questions = await ai_feedback.generate_quiz_questions(category, difficulty, req.count)
	except Exception:
		logger.warning("Quiz generation failed, using default questions", exc_info=True)
		questions = ai_feedback.defaults(ai_feedback.DEFAULT_QUIZ_QUESTIONS)
	return {
		"message": "Quiz questions generated",
		"category": category,
		"difficulty": difficulty,
		"questions": questions,
	}


@router.get("/health")
async def health():
	return {
		"status": "OK",
		"service": "AI Service",
		"features": ["speaking-analysis", "whisper-transcription", "ai-tutor", "scenario-evaluation", "quiz-generation"],
	}
