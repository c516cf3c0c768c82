from callcenter_english import feedback
from callcenter_english.models import Scenario


def test_list_scenarios_by_difficulty(client, auth_headers, seeded):
	all_scenarios = client.get("/api/ai/scenarios", headers=auth_headers).json()["scenarios"]
	assert len(all_scenarios) == 8
	assert all_scenarios[0]["customerPersona"]["name"]

	beginner = client.get("/api/ai/scenarios", headers=auth_headers, params={"difficulty": "Beginner"}).json()["scenarios"]
	assert beginner
	assert {s["difficulty"] for s in beginner} == {"Beginner"}


def test_scenario_attempts_are_numbered(client, auth_headers, other_auth_headers, seeded):
	scenario_id = seeded.query(Scenario).first().id
	url = f"/api/ai/scenario/{scenario_id}/attempt"

	first = client.post(url, headers=auth_headers, json={"userResponse": "Hello, how can I help?"})
	assert first.status_code == 200
	assert first.json()["attempt"]["attemptNumber"] == 1
	assert first.json()["evaluation"] == feedback.DEFAULT_SCENARIO_EVALUATION

	second = client.post(url, headers=auth_headers, json={"userResponse": "Good morning!"})
	assert second.json()["attempt"]["attemptNumber"] == 2
	assert second.json()["attempt"]["aiEvaluation"]["score"] == 80

	other = client.post(url, headers=other_auth_headers, json={"userResponse": "Hi"})
	assert other.json()["attempt"]["attemptNumber"] == 1


def test_scenario_attempt_uses_evaluation(client, auth_headers, seeded, monkeypatch):
	scenario = seeded.query(Scenario).first()

	async def fake(user_response, description, persona, expected):
		assert persona == scenario.customer_persona
		assert expected == scenario.expected_responses
		return {"score": 64.0, "feedback": "Too short.", "strengths": [], "improvements": ["Add a greeting"]}

	monkeypatch.setattr(feedback, "evaluate_scenario_response", fake)
	resp = client.post(f"/api/ai/scenario/{scenario.id}/attempt", headers=auth_headers, json={"userResponse": "Yes?"})
	assert resp.json()["evaluation"]["score"] == 64.0


def test_scenario_attempt_unknown_scenario(client, auth_headers):
	resp = client.post("/api/ai/scenario/9999/attempt", headers=auth_headers, json={"userResponse": "Hello"})
	assert resp.status_code == 404


def test_ask_tutor(client, auth_headers, monkeypatch):
	missing = client.post("/api/ai/ask-tutor", headers=auth_headers, json={"question": "   "})
	assert missing.status_code == 400
	assert missing.json()["detail"] == "Question is required"

	fallback = client.post("/api/ai/ask-tutor", headers=auth_headers, json={"question": "When do I use 'would'?"})
	assert fallback.status_code == 200
	assert fallback.json()["response"] == feedback.DEFAULT_TUTOR_RESPONSE

	async def fake(question, context=None):
		return feedback.parse_tutor_response("Use 'would' for polite requests.")

	monkeypatch.setattr(feedback, "generate_tutor_response", fake)
	answered = client.post("/api/ai/ask-tutor", headers=auth_headers, json={"question": "When do I use 'would'?"})
	assert answered.json()["response"]["answer"] == "Use 'would' for polite requests."


def test_generate_quiz(client, auth_headers):
	missing = client.post("/api/ai/generate-quiz", headers=auth_headers, json={"category": "Grammar"})
	assert missing.status_code == 400
	assert missing.json()["detail"] == "Category and difficulty are required"

	too_many = client.post(
		"/api/ai/generate-quiz", headers=auth_headers, json={"category": "Grammar", "difficulty": "B1", "count": 50}
	)
	assert too_many.status_code == 400

	fallback = client.post("/api/ai/generate-quiz", headers=auth_headers, json={"category": "Grammar", "difficulty": "B1"})
	assert fallback.status_code == 200
	assert fallback.json()["questions"] == feedback.DEFAULT_QUIZ_QUESTIONS


def test_health_endpoints_need_no_auth(client):
	assert client.get("/api/health").json()["status"] == "OK"
	assert client.get("/api/ai/health").json()["service"] == "AI Service"
	assert client.get("/api/tts/health").json()["status"] == "OK"


def test_validation_errors_are_400(client, auth_headers):
	resp = client.post("/api/ai/speaking-session", headers=auth_headers, json={})
	assert resp.status_code == 400
	assert resp.json()["detail"] == "Invalid request"
