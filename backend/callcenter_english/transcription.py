"""Speech-to-text adapter.

Thin wrapper around the provider's transcription endpoint plus the local
checks (extension allow-list, 25MB ceiling) that must pass before any
audio leaves the server.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel

from .openai_client import OpenAIClient
from .settings import settings

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".wav", ".webm")
INVALID_FORMAT_MESSAGE = "Invalid audio format. Supported formats: " + ", ".join(e.lstrip(".") for e in SUPPORTED_EXTENSIONS)


class AudioValidationError(ValueError):
	pass


class TranscriptionResult(BaseModel):
	text: str
	language: str = "en"
	# The provider's json format reports neither duration nor confidence
	duration: float = 0.0
	confidence: Optional[float] = 0.95


def validate_audio_file(file_path: str | os.PathLike) -> bool:
	return Path(file_path).suffix.lower() in SUPPORTED_EXTENSIONS


def get_file_size_mb(file_path: str | os.PathLike) -> float:
	return os.path.getsize(file_path) / (1024 * 1024)


def is_file_size_valid(file_path: str | os.PathLike, max_size_mb: Optional[int] = None) -> bool:
	limit = settings.max_upload_mb if max_size_mb is None else max_size_mb
	return get_file_size_mb(file_path) <= limit


def check_audio_file(file_path: str | os.PathLike) -> None:
	"""Raise ``AudioValidationError`` unless the file may be sent for transcription."""
	if not validate_audio_file(file_path):
		raise AudioValidationError(INVALID_FORMAT_MESSAGE)
	if not is_file_size_valid(file_path):
		raise AudioValidationError(f"Audio file is too large. Maximum size: {settings.max_upload_mb}MB")


def _to_result(body: Dict[str, Any]) -> TranscriptionResult:
	return TranscriptionResult(
		text=body.get("text", ""),
		language=body.get("language") or "en",
		duration=float(body.get("duration") or 0.0),
	)


async def transcribe_audio(file_path: str | os.PathLike, *, language: Optional[str] = "en") -> TranscriptionResult:
	path = Path(file_path)
	if not path.exists():
		raise FileNotFoundError(f"Audio file not found: {path}")
	audio = path.read_bytes()
	return await transcribe_audio_buffer(audio, path.name, language=language)


async def transcribe_audio_buffer(
	audio: bytes,
	filename: str = "audio.wav",
	*,
	language: Optional[str] = "en",
) -> TranscriptionResult:
	client = OpenAIClient()
	try:
		body = await client.transcribe(audio, filename, language=language)
	finally:
		await client.aclose()
	result = _to_result(body)
	logger.info("Transcribed %s (%d bytes, %d chars)", filename, len(audio), len(result.text))
	return result
