from __future__ import annotations
import base64
import logging
import secrets
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .openai_client import OpenAIClient
from .settings import settings
from .uploads import cleanup_file

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 4096
MIN_SPEED = 0.25
MAX_SPEED = 4.0
MODELS = ("tts-1", "tts-1-hd")
VOICES: Dict[str, str] = {
	"alloy": "Neutral, balanced voice - good for professional content",
	"echo": "Deep, warm voice - suitable for narration",
	"fable": "Friendly, engaging voice - good for interactive content",
	"onyx": "Deep, authoritative voice - suitable for important announcements",
	"nova": "Clear, natural voice - recommended for general use",
	"shimmer": "Bright, energetic voice - good for upbeat content",
}


class SpeechSynthesisError(ValueError):
	"""Input rejected before calling the provider."""


def get_available_voices() -> Dict[str, str]:
	return dict(VOICES)


def get_audio_dir() -> Path:
	path = Path(settings.audio_output_dir)
	path.mkdir(parents=True, exist_ok=True)
	return path


def validate_request(text: str, voice: str, speed: float, model: str) -> None:
	if not text or not text.strip():
		raise SpeechSynthesisError("Text cannot be empty")
	if len(text) > MAX_TEXT_LENGTH:
		raise SpeechSynthesisError(f"Text exceeds maximum length of {MAX_TEXT_LENGTH} characters")
	if voice not in VOICES:
		raise SpeechSynthesisError(f"Unknown voice '{voice}'. Available: {', '.join(VOICES)}")
	if model not in MODELS:
		raise SpeechSynthesisError(f"Unknown model '{model}'. Available: {', '.join(MODELS)}")
	if not MIN_SPEED <= speed <= MAX_SPEED:
		raise SpeechSynthesisError(f"Speed must be between {MIN_SPEED} and {MAX_SPEED}")


async def text_to_speech_bytes(
	text: str,
	*,
	voice: Optional[str] = None,
	speed: float = 1.0,
	model: Optional[str] = None,
) -> bytes:
	voice = voice or settings.openai_tts_voice
	model = model or settings.openai_tts_model
	validate_request(text, voice, speed, model)
	client = OpenAIClient()
	try:
		return await client.speech(text, voice=voice, model=model, speed=speed)
	finally:
		await client.aclose()


async def text_to_speech_base64(text: str, **options: Any) -> str:
	audio = await text_to_speech_bytes(text, **options)
	return base64.b64encode(audio).decode("ascii")


async def text_to_speech_file(text: str, **options: Any) -> Path:
	audio = await text_to_speech_bytes(text, **options)
	path = get_audio_dir() / f"tts_{int(time.time() * 1000)}_{secrets.token_hex(4)}.mp3"
	path.write_bytes(audio)
	return path


def read_and_cleanup(path: Path) -> str:
	"""Read a generated audio file as base64 and delete it."""
	try:
		return base64.b64encode(path.read_bytes()).decode("ascii")
	finally:
		cleanup_file(path)


def as_data_uri(audio_base64: str) -> str:
	return f"data:audio/mpeg;base64,{audio_base64}"


def scenario_narration_text(scenario_name: str, customer_persona: Optional[Dict[str, Any]]) -> str:
	persona = customer_persona or {}
	name = persona.get("name") or "a customer"
	mood = persona.get("mood") or "neutral"
	accent = persona.get("accent") or "American"
	return (
		f"Welcome to the {scenario_name} scenario. "
		f"You will be speaking with {name}, a customer with a {mood} mood and {accent} accent. "
		"Please respond professionally and empathetically. "
		"You may begin when ready."
	)


def lesson_introduction_text(lesson_title: str, lesson_description: str) -> str:
	intro = f"Welcome to the lesson: {lesson_title}. "
	outro = "Let's begin learning."
	room = MAX_TEXT_LENGTH - len(intro) - len(outro) - 1
	description = (lesson_description or "").strip()
	if len(description) > room:
		description = description[: max(0, room - 3)].rstrip() + "..."
	return f"{intro}{description} {outro}" if description else f"{intro}{outro}"


async def generate_scenario_narration(
	scenario_name: str,
	customer_persona: Optional[Dict[str, Any]],
	*,
	voice: str = "nova",
	speed: float = 0.9,
) -> Tuple[Path, str]:
	text = scenario_narration_text(scenario_name, customer_persona)
	return await text_to_speech_file(text, voice=voice, speed=speed), text


async def generate_lesson_introduction(
	lesson_title: str,
	lesson_description: str,
	*,
	voice: str = "nova",
	speed: float = 0.9,
) -> Tuple[Path, str]:
	text = lesson_introduction_text(lesson_title, lesson_description)
	return await text_to_speech_file(text, voice=voice, speed=speed), text


async def generate_feedback_audio(feedback: str, *, voice: str = "shimmer", speed: float = 0.95) -> Path:
	return await text_to_speech_file(feedback, voice=voice, speed=speed)


async def generate_quiz_question_audio(question: str, *, voice: str = "nova", speed: float = 0.85) -> Path:
	return await text_to_speech_file(question, voice=voice, speed=speed)
