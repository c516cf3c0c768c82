import pytest

from callcenter_english.routers.quizzes import quiz_score


def _submit(client, headers, quiz_type, correct, total, quiz_id="weekly-1"):
	return client.post(
		f"/api/quizzes/{quiz_id}/submit",
		headers=headers,
		json={"quizType": quiz_type, "totalQuestions": total, "correctAnswers": correct, "timeSpentSeconds": 120},
	)


def test_quiz_score_is_exact_percentage():
	assert quiz_score(7, 9) == 7 / 9 * 100
	assert quiz_score(0, 4) == 0
	assert quiz_score(4, 4) == 100
	with pytest.raises(ValueError):
		quiz_score(1, 0)


def test_submit_stores_unrounded_score(client, auth_headers):
	resp = _submit(client, auth_headers, "Grammar", 7, 9)
	assert resp.status_code == 200
	body = resp.json()
	assert body["quizId"] == "weekly-1"
	assert body["score"] == pytest.approx(7 / 9 * 100)
	assert body["result"]["correctAnswers"] == 7
	assert body["result"]["score"] == pytest.approx(77.78, abs=0.01)


@pytest.mark.parametrize("correct,total", [(0, 0), (5, 4), (-1, 4)])
def test_submit_rejects_impossible_counts(client, auth_headers, correct, total):
	assert _submit(client, auth_headers, "Grammar", correct, total).status_code == 400


def test_results_and_stats(client, auth_headers, other_auth_headers):
	empty = client.get("/api/quizzes/stats", headers=auth_headers).json()["stats"]
	assert empty == {"totalQuizzes": 0, "averageScore": 0, "quizzesByType": {}}

	_submit(client, auth_headers, "Grammar", 8, 10)
	_submit(client, auth_headers, "Grammar", 5, 10, quiz_id="weekly-2")
	_submit(client, auth_headers, "Vocabulary", 2, 3)
	_submit(client, other_auth_headers, "Listening", 1, 1)

	results = client.get("/api/quizzes", headers=auth_headers).json()["quizzes"]
	assert len(results) == 3
	assert results[0]["quizType"] == "Vocabulary"

	stats = client.get("/api/quizzes/stats", headers=auth_headers).json()["stats"]
	assert stats["totalQuizzes"] == 3
	assert stats["quizzesByType"] == {"Grammar": 2, "Vocabulary": 1}
	assert stats["averageScore"] == pytest.approx((80 + 50 + 200 / 3) / 3, abs=0.01)
