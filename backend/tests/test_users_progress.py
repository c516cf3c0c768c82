import pytest

from callcenter_english import feedback
from callcenter_english.models import SkillMastery


def test_profile_read_and_update(client, auth_headers):
	resp = client.get("/api/users/profile", headers=auth_headers)
	assert resp.status_code == 200
	assert resp.json()["user"]["lastName"] == "Hassan"

	updated = client.put("/api/users/profile", headers=auth_headers, json={"firstName": "Mariam", "lastName": ""})
	assert updated.status_code == 200
	user = updated.json()["user"]
	assert user["firstName"] == "Mariam"
	# blank values leave the name untouched
	assert user["lastName"] == "Hassan"


def test_initialize_progress_once(client, auth_headers):
	assert client.get("/api/progress", headers=auth_headers).status_code == 404

	created = client.post("/api/users/initialize-progress", headers=auth_headers)
	assert created.status_code == 201
	progress = created.json()["progress"]
	assert progress["currentModule"] == 1
	assert progress["currentWeek"] == 1
	assert progress["overallMasteryScore"] == 0
	assert progress["expectedCompletionDate"] is not None

	again = client.post("/api/users/initialize-progress", headers=auth_headers)
	assert again.status_code == 400

	fetched = client.get("/api/progress", headers=auth_headers)
	assert fetched.status_code == 200
	assert fetched.json()["progress"]["id"] == progress["id"]


def test_update_progress_partial_and_validated(client, auth_headers):
	assert client.put("/api/progress", headers=auth_headers, json={"currentWeek": 2}).status_code == 404
	client.post("/api/users/initialize-progress", headers=auth_headers)

	resp = client.put("/api/progress", headers=auth_headers, json={"currentModule": 2, "totalHoursCompleted": 12.5})
	assert resp.status_code == 200
	progress = resp.json()["progress"]
	assert progress["currentModule"] == 2
	assert progress["currentWeek"] == 1
	assert progress["totalHoursCompleted"] == 12.5

	assert client.put("/api/progress", headers=auth_headers, json={"currentWeek": 9}).status_code == 400


def test_skill_upsert_keeps_latest_score_and_counts_practice(client, auth_headers, db_session):
	client.post("/api/users/initialize-progress", headers=auth_headers)
	first = client.post(
		"/api/progress/skills",
		headers=auth_headers,
		json={"skillName": "De-escalation", "skillCategory": "CallCenter", "masteryScore": 40},
	)
	assert first.status_code == 200
	assert first.json()["skill"]["practiceCount"] == 1

	second = client.post(
		"/api/progress/skills",
		headers=auth_headers,
		json={"skillName": "De-escalation", "skillCategory": "CallCenter", "masteryScore": 90},
	)
	skill = second.json()["skill"]
	assert skill["masteryScore"] == 90
	assert skill["practiceCount"] == 2
	assert skill["lastPracticedAt"] is not None

	client.post(
		"/api/progress/skills",
		headers=auth_headers,
		json={"skillName": "Past Perfect", "skillCategory": "Grammar", "masteryScore": 50},
	)
	skills = client.get("/api/progress/skills", headers=auth_headers).json()["skills"]
	assert [s["skillName"] for s in skills] == ["De-escalation", "Past Perfect"]
	assert db_session.query(SkillMastery).count() == 2

	progress = client.get("/api/progress", headers=auth_headers).json()["progress"]
	assert progress["overallMasteryScore"] == pytest.approx(70.0)


def test_skills_are_per_user(client, auth_headers, other_auth_headers):
	payload = {"skillName": "Empathy Statements", "skillCategory": "Cultural", "masteryScore": 60}
	client.post("/api/progress/skills", headers=auth_headers, json=payload)
	resp = client.post("/api/progress/skills", headers=other_auth_headers, json=payload)
	assert resp.json()["skill"]["practiceCount"] == 1
	assert len(client.get("/api/progress/skills", headers=other_auth_headers).json()["skills"]) == 1


def test_skill_score_out_of_range_is_rejected(client, auth_headers):
	resp = client.post(
		"/api/progress/skills",
		headers=auth_headers,
		json={"skillName": "Grammar", "skillCategory": "Grammar", "masteryScore": 120},
	)
	assert resp.status_code == 400


def test_recommendations_fall_back_when_provider_fails(client, auth_headers):
	assert client.get("/api/progress/recommendations", headers=auth_headers).status_code == 404
	client.post("/api/users/initialize-progress", headers=auth_headers)
	client.post(
		"/api/progress/skills",
		headers=auth_headers,
		json={"skillName": "Phrasal Verbs", "skillCategory": "Grammar", "masteryScore": 30},
	)
	resp = client.get("/api/progress/recommendations", headers=auth_headers)
	assert resp.status_code == 200
	body = resp.json()
	assert body["weakSkills"] == ["Phrasal Verbs"]
	assert body["recommendations"] == feedback.DEFAULT_RECOMMENDATIONS


def test_recommendations_use_provider_result(client, auth_headers, monkeypatch):
	client.post("/api/users/initialize-progress", headers=auth_headers)
	seen = {}

	async def fake(progress, weak_skills):
		seen["progress"] = progress
		return {"recommendations": ["Shadow native speakers"], "focusAreas": ["Fluency"], "estimatedTimeToB2": 6}

	monkeypatch.setattr(feedback, "generate_learning_recommendations", fake)
	resp = client.get("/api/progress/recommendations", headers=auth_headers)
	assert resp.json()["recommendations"]["estimatedTimeToB2"] == 6
	assert seen["progress"]["currentModule"] == 1
