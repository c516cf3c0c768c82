from __future__ import annotations
import httpx
from pathlib import Path
from typing import Any, Dict, List, Optional
from .settings import settings


class OpenAIClientError(RuntimeError):
	"""Raised for any failed call to the provider (config, transport, HTTP status, response shape)."""


class OpenAIClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.openai_api_key
		if not self.api_key:
			raise OpenAIClientError("OPENAI_API_KEY is not configured")
		self.model = model or settings.openai_chat_model
		self.base_url = (base_url or settings.openai_base_url).rstrip("/")
		self._headers = {"Authorization": f"Bearer {self.api_key}"}
		self._client = httpx.AsyncClient(
			timeout=timeout or settings.openai_timeout_seconds,
			transport=transport,
		)

	async def chat(
		self,
		messages: List[Dict[str, str]],
		*,
		temperature: Optional[float] = None,
	) -> str:
		payload: Dict[str, Any] = {
			"model": self.model,
			"messages": messages,
			"temperature": settings.openai_chat_temperature if temperature is None else temperature,
		}
		r = await self._post("/chat/completions", json=payload)
		try:
			content = r.json()["choices"][0]["message"]["content"]
		except Exception:
			raise OpenAIClientError(f"Unexpected chat completion response: {r.text[:500]}")
		if not content:
			raise OpenAIClientError("No response content from chat completion")
		return content

	async def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
		messages: List[Dict[str, str]] = []
		if system:
			messages.append({"role": "system", "content": system})
		messages.append({"role": "user", "content": prompt})
		return await self.chat(messages)

	async def transcribe(
		self,
		audio: bytes,
		filename: str,
		*,
		model: Optional[str] = None,
		language: Optional[str] = "en",
		response_format: str = "json",
	) -> Dict[str, Any]:
		data: Dict[str, Any] = {
			"model": model or settings.openai_transcribe_model,
			"response_format": response_format,
			"temperature": "0",
		}
		if language:
			data["language"] = language
		files = {"file": (Path(filename).name, audio, "application/octet-stream")}
		r = await self._post("/audio/transcriptions", data=data, files=files)
		try:
			body = r.json()
		except Exception:
			body = None
		if not isinstance(body, dict) or not isinstance(body.get("text"), str):
			raise OpenAIClientError(f"Unexpected transcription response: {r.text[:500]}")
		return body

	async def speech(
		self,
		text: str,
		*,
		voice: str,
		model: Optional[str] = None,
		speed: float = 1.0,
		response_format: str = "mp3",
	) -> bytes:
		payload = {
			"model": model or settings.openai_tts_model,
			"voice": voice,
			"input": text,
			"speed": speed,
			"response_format": response_format,
		}
		r = await self._post("/audio/speech", json=payload)
		if not r.content:
			raise OpenAIClientError("Empty audio returned by speech endpoint")
		return r.content

	async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
		try:
			r = await self._client.post(f"{self.base_url}{path}", headers=self._headers, **kwargs)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			raise OpenAIClientError(
				f"OpenAI {path} returned {http_err.response.status_code}: {http_err.response.text[:500]}"
			) from http_err
		except httpx.RequestError as net_err:
			raise OpenAIClientError(f"OpenAI {path} request failed: {net_err}") from net_err
		return r

	async def aclose(self) -> None:
		await self._client.aclose()
