import json

import pytest

from callcenter_english import feedback
from callcenter_english.routers import ai
from callcenter_english.settings import settings
from callcenter_english.transcription import INVALID_FORMAT_MESSAGE, TranscriptionResult


def _start(client, headers, scenario_type="Basic Customer Greeting"):
	resp = client.post("/api/ai/speaking-session", headers=headers, json={"scenarioType": scenario_type})
	assert resp.status_code == 200, resp.text
	return resp.json()["sessionId"]


def _submit(client, headers, session_id, files=None, **form):
	return client.post(f"/api/ai/speaking-session/{session_id}/submit", headers=headers, data=form, files=files)


def _fake_analysis(reply, seen=None):
	async def fake(transcript, scenario_type, expected_responses):
		if seen is not None:
			seen.append((transcript, scenario_type, list(expected_responses)))
		return feedback.parse_speaking_feedback(reply)

	return fake


def _uploads_left(temp_dirs):
	uploads, _ = temp_dirs
	return list(uploads.iterdir()) if uploads.exists() else []


def test_transcript_submission_is_scored(client, auth_headers, monkeypatch):
	seen = []
	reply = json.dumps(
		{
			"fluencyScore": 120,
			"pronunciationScore": 80,
			"grammarScore": 70,
			"culturalNuanceScore": 90,
			"feedback": "Clear and polite.",
			"suggestions": ["Slow down a little"],
		}
	)
	monkeypatch.setattr(feedback, "analyze_speaking_session", _fake_analysis(reply, seen))
	session_id = _start(client, auth_headers)

	resp = _submit(
		client,
		auth_headers,
		session_id,
		transcript="  Hello, thank you for calling.  ",
		duration="42",
		expectedResponses=json.dumps(["Hello, how can I help?", "Good morning"]),
	)
	assert resp.status_code == 200
	body = resp.json()
	assert body["transcript"] == "Hello, thank you for calling."
	assert body["scores"]["fluencyScore"] == 100
	assert body["scores"]["overallScore"] == pytest.approx((100 + 80 + 70 + 90) / 4)
	assert body["feedback"] == "Clear and polite."
	assert body["suggestions"] == ["Slow down a little"]
	assert body["session"]["duration"] == 42
	assert body["session"]["aiTranscript"] == "Hello, thank you for calling."
	assert seen == [("Hello, thank you for calling.", "Basic Customer Greeting", ["Hello, how can I help?", "Good morning"])]


def test_feedback_failure_is_masked_with_defaults(client, auth_headers):
	# no provider key is configured, so the feedback call fails
	session_id = _start(client, auth_headers)
	resp = _submit(client, auth_headers, session_id, transcript="Hi, how may I help you?")
	assert resp.status_code == 200
	scores = resp.json()["scores"]
	assert scores == {
		"fluencyScore": 75,
		"pronunciationScore": 78,
		"grammarScore": 72,
		"culturalNuanceScore": 80,
		"overallScore": 76.25,
	}
	assert resp.json()["feedback"] == feedback.DEFAULT_SPEAKING_FEEDBACK["feedback"]


def test_malformed_feedback_is_masked_with_defaults(client, auth_headers, monkeypatch):
	monkeypatch.setattr(feedback, "analyze_speaking_session", _fake_analysis("I think it went well!"))
	session_id = _start(client, auth_headers)
	resp = _submit(client, auth_headers, session_id, transcript="Hello")
	assert resp.status_code == 200
	assert resp.json()["scores"]["overallScore"] == 76.25


def test_empty_submission_gets_default_scores(client, auth_headers):
	session_id = _start(client, auth_headers)
	resp = _submit(client, auth_headers, session_id, duration="5")
	assert resp.status_code == 200
	assert resp.json()["transcript"] == ""
	assert resp.json()["scores"]["overallScore"] == 76.25


def test_missing_or_foreign_session_is_404(client, auth_headers, other_auth_headers):
	assert _submit(client, auth_headers, 9999, transcript="Hello").status_code == 404

	session_id = _start(client, auth_headers)
	resp = _submit(client, other_auth_headers, session_id, transcript="Hello")
	assert resp.status_code == 404
	assert resp.json()["detail"] == "Session not found"


def test_resubmission_overwrites_scores(client, auth_headers, monkeypatch):
	session_id = _start(client, auth_headers)
	first = json.dumps(
		{"fluencyScore": 40, "pronunciationScore": 40, "grammarScore": 40, "culturalNuanceScore": 40, "feedback": "Keep going."}
	)
	second = json.dumps(
		{"fluencyScore": 90, "pronunciationScore": 80, "grammarScore": 100, "culturalNuanceScore": 70, "feedback": "Much better."}
	)

	monkeypatch.setattr(feedback, "analyze_speaking_session", _fake_analysis(first))
	_submit(client, auth_headers, session_id, transcript="first try")
	monkeypatch.setattr(feedback, "analyze_speaking_session", _fake_analysis(second))
	_submit(client, auth_headers, session_id, transcript="second try")

	sessions = client.get("/api/ai/speaking-sessions", headers=auth_headers).json()["sessions"]
	assert len(sessions) == 1
	assert sessions[0]["overallScore"] == pytest.approx(85)
	assert sessions[0]["aiTranscript"] == "second try"
	assert sessions[0]["aiFeedback"] == "Much better."


def test_unsupported_extension_rejected_before_transcription(client, auth_headers, temp_dirs, monkeypatch):
	calls = []

	async def fake_transcribe(path, **kwargs):
		calls.append(path)
		return TranscriptionResult(text="unused")

	monkeypatch.setattr(ai, "transcribe_audio", fake_transcribe)
	session_id = _start(client, auth_headers)
	resp = _submit(client, auth_headers, session_id, files={"audio": ("notes.txt", b"not audio", "text/plain")})
	assert resp.status_code == 400
	assert resp.json()["detail"] == INVALID_FORMAT_MESSAGE
	assert calls == []
	assert _uploads_left(temp_dirs) == []


def test_oversized_audio_rejected_and_removed(client, auth_headers, temp_dirs, monkeypatch):
	calls = []

	async def fake_transcribe(path, **kwargs):
		calls.append(path)
		return TranscriptionResult(text="unused")

	monkeypatch.setattr(ai, "transcribe_audio", fake_transcribe)
	monkeypatch.setattr(settings, "max_upload_mb", 0)
	session_id = _start(client, auth_headers)
	resp = _submit(client, auth_headers, session_id, files={"audio": ("clip.wav", b"RIFF" + b"\0" * 64, "audio/wav")})
	assert resp.status_code == 400
	assert "too large" in resp.json()["detail"]
	assert calls == []
	assert _uploads_left(temp_dirs) == []


def test_transcription_failure_is_an_error_and_file_removed(client, auth_headers, temp_dirs):
	# no provider key: the transcription call itself fails
	session_id = _start(client, auth_headers)
	resp = _submit(client, auth_headers, session_id, files={"audio": ("clip.webm", b"\x1aE\xdf\xa3" * 16, "audio/webm")})
	assert resp.status_code == 500
	assert resp.json()["detail"].startswith("Error processing audio file")
	assert _uploads_left(temp_dirs) == []

	sessions = client.get("/api/ai/speaking-sessions", headers=auth_headers).json()["sessions"]
	assert sessions[0]["overallScore"] is None


def test_audio_submission_transcribes_then_cleans_up(client, auth_headers, temp_dirs, monkeypatch):
	seen_paths = []

	async def fake_transcribe(path, **kwargs):
		assert path.exists()
		assert path.read_bytes() == b"ID3" + b"\0" * 32
		seen_paths.append(path)
		return TranscriptionResult(text="Thank you for calling, how can I help?")

	monkeypatch.setattr(ai, "transcribe_audio", fake_transcribe)
	session_id = _start(client, auth_headers)
	resp = _submit(
		client,
		auth_headers,
		session_id,
		files={"audio": ("answer.MP3", b"ID3" + b"\0" * 32, "audio/mpeg")},
		transcript="ignored when audio is present",
	)
	assert resp.status_code == 200
	assert resp.json()["transcript"] == "Thank you for calling, how can I help?"
	assert resp.json()["scores"]["overallScore"] == 76.25
	assert len(seen_paths) == 1
	assert not seen_paths[0].exists()
	assert _uploads_left(temp_dirs) == []


@pytest.mark.parametrize(
	"raw,expected",
	[
		(None, []),
		("", []),
		('["a", " b ", ""]', ["a", "b"]),
		('"single"', ["single"]),
		("line one\n\nline two\n", ["line one", "line two"]),
	],
)
def test_parse_expected_responses(raw, expected):
	assert ai.parse_expected_responses(raw) == expected
