from __future__ import annotations
import logging
import os
import secrets
import time
from datetime import datetime, timedelta
from pathlib import Path

from fastapi import UploadFile

from .settings import settings
from .transcription import AudioValidationError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def get_uploads_dir() -> Path:
	path = Path(settings.uploads_dir)
	path.mkdir(parents=True, exist_ok=True)
	return path


def unique_filename(original: str | None, default_stem: str = "audio") -> str:
	name = Path(original or "").name
	ext = Path(name).suffix.lower()
	stem = Path(name).stem or default_stem
	# Keep names filesystem-safe
	stem = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in stem)[:64]
	return f"{stem}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


async def save_upload(upload: UploadFile, destination: Path, max_bytes: int | None = None) -> int:
	"""Stream ``upload`` into ``destination``.

	Stops and raises ``AudioValidationError`` once more than ``max_bytes`` have
	arrived. The partially written file is left for the caller to clean up.
	Returns the number of bytes written.
	"""
	limit = settings.max_upload_mb * 1024 * 1024 if max_bytes is None else max_bytes
	written = 0
	with open(destination, "wb") as fh:
		while True:
			chunk = await upload.read(_CHUNK_SIZE)
			if not chunk:
				break
			written += len(chunk)
			if written > limit:
				raise AudioValidationError(f"Audio file is too large. Maximum size: {settings.max_upload_mb}MB")
			fh.write(chunk)
	return written


def cleanup_file(file_path: str | os.PathLike | None) -> None:
	if not file_path:
		return
	try:
		if os.path.exists(file_path):
			os.unlink(file_path)
	except OSError:
		logger.error("Error deleting file %s", file_path, exc_info=True)


def purge_stale_files(directory: str | os.PathLike, max_age: timedelta) -> int:
	"""Remove temp files older than ``max_age`` left behind by an interrupted process."""
	root = Path(directory)
	if not root.is_dir():
		return 0
	threshold = (datetime.now() - max_age).timestamp()
	removed = 0
	for entry in root.iterdir():
		try:
			if entry.is_file() and entry.stat().st_mtime < threshold:
				entry.unlink()
				removed += 1
		except OSError:
			logger.error("Error purging stale file %s", entry, exc_info=True)
	if removed:
		logger.info("Purged %d stale file(s) from %s", removed, root)
	return removed
