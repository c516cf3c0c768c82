from pathlib import Path
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .. import speech_synthesis as tts
from ..db import get_db
from ..models import Lesson, Scenario, User
from ..schemas import CamelModel
from ..uploads import cleanup_file
from .auth import get_current_user

router = APIRouter(prefix="/tts", tags=["tts"])
logger = logging.getLogger(__name__)


class GenerateSpeechRequest(CamelModel):
	text: Optional[str] = None
	voice: str = "nova"
	speed: float = 1.0
	model: str = "tts-1"


class FeedbackAudioRequest(CamelModel):
	feedback: Optional[str] = None
	voice: str = "shimmer"
	speed: float = 0.95


class QuizQuestionAudioRequest(CamelModel):
	question: Optional[str] = None
	voice: str = "nova"
	speed: float = 0.85


def _require_text(value: Optional[str], label: str) -> str:
	if not value or not value.strip():
		raise HTTPException(status_code=400, detail=f"{label} is required")
	if len(value) > tts.MAX_TEXT_LENGTH:
		raise HTTPException(status_code=400, detail=f"{label} exceeds maximum length of {tts.MAX_TEXT_LENGTH} characters")
	return value


def _provider_failure(what: str, error: Exception) -> HTTPException:
	logger.error("Error generating %s", what, exc_info=error)
	return HTTPException(status_code=500, detail={"error": f"Failed to generate {what}", "details": str(error)})


async def _file_to_data_uri(make_file, what: str):
	path: Optional[Path] = None
	try:
		result = await make_file()
		path, text = result if isinstance(result, tuple) else (result, None)
		return tts.as_data_uri(tts.read_and_cleanup(path)), text
	except tts.SpeechSynthesisError as e:
		raise HTTPException(status_code=400, detail=str(e))
	except Exception as e:
		raise _provider_failure(what, e)
	finally:
		cleanup_file(path)


@router.post("/generate")
async def generate(req: GenerateSpeechRequest, user: User = Depends(get_current_user)):
	text = _require_text(req.text, "Text")
	try:
		audio = await tts.text_to_speech_base64(text, voice=req.voice, speed=req.speed, model=req.model)
	except tts.SpeechSynthesisError as e:
		raise HTTPException(status_code=400, detail=str(e))
	except Exception as e:
		raise _provider_failure("speech", e)
	return {
		"message": "Speech generated successfully",
		"audio": tts.as_data_uri(audio),
		"text": text,
		"voice": req.voice,
		"speed": req.speed,
		"model": req.model,
	}


@router.get("/scenario/{scenario_id}")
async def scenario_narration(
	scenario_id: int,
	voice: str = Query(default="nova"),
	speed: float = Query(default=0.9),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	scenario = db.get(Scenario, scenario_id)
	if scenario is None:
		raise HTTPException(status_code=404, detail="Scenario not found")
	audio, text = await _file_to_data_uri(
		lambda: tts.generate_scenario_narration(scenario.scenario_name, scenario.customer_persona, voice=voice, speed=speed),
		"scenario narration",
	)
	return {
		"message": "Scenario narration generated",
		"scenarioId": scenario_id,
		"scenarioName": scenario.scenario_name,
		"audio": audio,
		"narrationText": text,
		"voice": voice,
		"speed": speed,
	}


@router.get("/lesson/{lesson_id}")
async def lesson_introduction(
	lesson_id: int,
	voice: str = Query(default="nova"),
	speed: float = Query(default=0.9),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	lesson = db.get(Lesson, lesson_id)
	if lesson is None:
		raise HTTPException(status_code=404, detail="Lesson not found")
	audio, text = await _file_to_data_uri(
		lambda: tts.generate_lesson_introduction(lesson.lesson_title, lesson.lesson_content, voice=voice, speed=speed),
		"lesson introduction",
	)
	return {
		"message": "Lesson introduction generated",
		"lessonId": lesson_id,
		"lessonTitle": lesson.lesson_title,
		"audio": audio,
		"introductionText": text,
		"voice": voice,
		"speed": speed,
	}


@router.post("/feedback")
async def feedback_audio(req: FeedbackAudioRequest, user: User = Depends(get_current_user)):
	text = _require_text(req.feedback, "Feedback text")
	audio, _ = await _file_to_data_uri(
		lambda: tts.generate_feedback_audio(text, voice=req.voice, speed=req.speed),
		"feedback audio",
	)
	return {
		"message": "Feedback audio generated",
		"audio": audio,
		"feedback": text,
		"voice": req.voice,
		"speed": req.speed,
	}


@router.post("/quiz-question")
async def quiz_question_audio(req: QuizQuestionAudioRequest, user: User = Depends(get_current_user)):
	text = _require_text(req.question, "Question text")
	audio, _ = await _file_to_data_uri(
		lambda: tts.generate_quiz_question_audio(text, voice=req.voice, speed=req.speed),
		"quiz question audio",
	)
	return {
		"message": "Quiz question audio generated",
		"audio": audio,
		"question": text,
		"voice": req.voice,
		"speed": req.speed,
	}


@router.get("/voices")
async def voices(user: User = Depends(get_current_user)):
	return {
		"message": "Available voices",
		"voices": tts.get_available_voices(),
		"models": list(tts.MODELS),
		"speedRange": {"min": tts.MIN_SPEED, "max": tts.MAX_SPEED, "default": 1.0},
	}


@router.get("/health")
async def health():
	return {
		"status": "OK",
		"service": "Text-to-Speech Service",
		"features": ["text-to-speech", "scenario-narration", "lesson-introduction", "feedback-audio", "quiz-audio"],
	}
