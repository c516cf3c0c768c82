"""AI feedback adapter.

Prompt templates for the chat-completion provider and the parsing of its
free-text replies. The model is asked for JSON; the first JSON object (or
array) found in the reply is extracted and then checked strictly. Every
public coroutine raises on failure (``OpenAIClientError`` or
``FeedbackParseError``); masking failures behind the ``DEFAULT_*`` payloads
is the caller's decision.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from .openai_client import OpenAIClient

logger = logging.getLogger(__name__)

SUB_SCORE_KEYS = ("fluencyScore", "pronunciationScore", "grammarScore", "culturalNuanceScore")

DEFAULT_SPEAKING_FEEDBACK: Dict[str, Any] = {
	"fluencyScore": 75.0,
	"pronunciationScore": 78.0,
	"grammarScore": 72.0,
	"culturalNuanceScore": 80.0,
	"overallScore": 76.25,
	"feedback": "Good effort! Your pronunciation is clear and your grammar is mostly correct.",
	"suggestions": [
		"Try to speak more naturally with better intonation",
		"Pay attention to stress patterns in words",
		"Use more varied vocabulary",
	],
}

DEFAULT_SCENARIO_EVALUATION: Dict[str, Any] = {
	"score": 80.0,
	"feedback": "Good response! You handled the scenario well.",
	"strengths": ["Clear communication", "Professional tone"],
	"improvements": ["Could be more concise"],
}

DEFAULT_TUTOR_RESPONSE: Dict[str, Any] = {
	"answer": "This is a great question! Let me explain...",
	"explanation": "Here is a detailed explanation of the concept.",
	"examples": ["Example 1: ...", "Example 2: ..."],
	"relatedTopics": ["Related Topic 1", "Related Topic 2"],
}

DEFAULT_QUIZ_QUESTIONS: List[Dict[str, Any]] = [
	{
		"question": "What is the correct form of the present simple tense?",
		"options": ["He go to school", "He goes to school", "He going to school", "He gone to school"],
		"correctAnswer": 1,
		"explanation": "In third person singular, we add -s to the verb.",
	},
	{
		"question": 'Which word means the same as "customer"?',
		"options": ["Client", "Employee", "Manager", "Supervisor"],
		"correctAnswer": 0,
		"explanation": "A client is another word for a customer of a service.",
	},
]

DEFAULT_RECOMMENDATIONS: Dict[str, Any] = {
	"recommendations": [
		"Practice one role-play scenario every day",
		"Review the grammar lessons of the current week",
		"Record yourself and compare with the expected responses",
	],
	"focusAreas": ["Speaking fluency", "Call-center vocabulary"],
	"estimatedTimeToB2": 12,
}


class FeedbackParseError(ValueError):
	pass


def defaults(payload: Any) -> Any:
	"""Return a private copy of one of the ``DEFAULT_*`` payloads."""
	return copy.deepcopy(payload)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _extract(text: str, pattern: str, expected: type) -> Any:
	try:
		data = json.loads(text)
		if isinstance(data, expected):
			return data
	except (TypeError, ValueError):
		pass
	match = re.search(pattern, text or "")
	if match:
		try:
			data = json.loads(match.group(0))
		except ValueError:
			data = None
		if isinstance(data, expected):
			return data
	raise FeedbackParseError(f"Could not parse JSON {expected.__name__} from model output")


def extract_json_block(text: str) -> Dict[str, Any]:
	return _extract(text, r"\{[\s\S]*\}", dict)


def extract_json_array(text: str) -> List[Any]:
	return _extract(text, r"\[[\s\S]*\]", list)


def clamp_score(value: float) -> float:
	return min(100.0, max(0.0, float(value)))


def _require_score(data: Dict[str, Any], key: str) -> float:
	value = data.get(key)
	if isinstance(value, bool):
		raise FeedbackParseError(f"{key} must be a number")
	try:
		return clamp_score(float(value))
	except (TypeError, ValueError):
		raise FeedbackParseError(f"{key} missing or not a number")


def _string_list(value: Any) -> List[str]:
	if not isinstance(value, list):
		return []
	return [str(v) for v in value if v is not None]


def overall_score(scores: Dict[str, float]) -> float:
	"""Arithmetic mean of the four speaking sub-scores."""
	return sum(float(scores[k]) for k in SUB_SCORE_KEYS) / len(SUB_SCORE_KEYS)


def parse_speaking_feedback(text: str) -> Dict[str, Any]:
	data = extract_json_block(text)
	scores = {key: _require_score(data, key) for key in SUB_SCORE_KEYS}
	feedback = data.get("feedback")
	if not isinstance(feedback, str) or not feedback.strip():
		raise FeedbackParseError("feedback missing")
	return {
		**scores,
		"overallScore": overall_score(scores),
		"feedback": feedback.strip(),
		"suggestions": _string_list(data.get("suggestions")),
	}


def parse_scenario_evaluation(text: str) -> Dict[str, Any]:
	data = extract_json_block(text)
	feedback = data.get("feedback")
	if not isinstance(feedback, str):
		raise FeedbackParseError("feedback missing")
	return {
		"score": _require_score(data, "score"),
		"feedback": feedback,
		"strengths": _string_list(data.get("strengths")),
		"improvements": _string_list(data.get("improvements")),
	}


def parse_tutor_response(text: str) -> Dict[str, Any]:
	# Free-text answers are acceptable here
	try:
		data = extract_json_block(text)
	except FeedbackParseError:
		data = None
	if data is None:
		return {"answer": text, "explanation": "", "examples": [], "relatedTopics": []}
	return {
		"answer": data.get("answer") or text,
		"explanation": data.get("explanation") or "",
		"examples": _string_list(data.get("examples")),
		"relatedTopics": _string_list(data.get("relatedTopics")),
	}


def parse_quiz_questions(text: str) -> List[Dict[str, Any]]:
	items = extract_json_array(text)
	questions: List[Dict[str, Any]] = []
	for item in items:
		if not isinstance(item, dict):
			continue
		question = item.get("question")
		options = item.get("options")
		answer = item.get("correctAnswer")
		if not isinstance(question, str) or not isinstance(options, list) or len(options) < 2:
			continue
		if not isinstance(answer, int) or isinstance(answer, bool) or not 0 <= answer < len(options):
			continue
		questions.append(
			{
				"question": question,
				"options": [str(o) for o in options],
				"correctAnswer": answer,
				"explanation": str(item.get("explanation") or ""),
			}
		)
	if not questions:
		raise FeedbackParseError("No valid quiz questions in model output")
	return questions


def parse_recommendations(text: str) -> Dict[str, Any]:
	data = extract_json_block(text)
	recommendations = _string_list(data.get("recommendations"))
	if not recommendations:
		raise FeedbackParseError("recommendations missing")
	weeks = data.get("estimatedTimeToB2")
	try:
		weeks = max(0, int(weeks))
	except (TypeError, ValueError):
		raise FeedbackParseError("estimatedTimeToB2 missing or not a number")
	return {
		"recommendations": recommendations,
		"focusAreas": _string_list(data.get("focusAreas")),
		"estimatedTimeToB2": weeks,
	}


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

def build_speaking_prompt(transcript: str, scenario_type: str, expected_responses: Sequence[str]) -> str:
	return f"""
You are an English language expert evaluating a call center agent's speaking performance.

Scenario: {scenario_type}
Expected Response Examples: {"; ".join(expected_responses)}
User's Actual Response: "{transcript}"

Evaluate the response on each criterion (0-100 scale):
1. Fluency: how naturally and smoothly they speak
2. Pronunciation: clarity and correctness of pronunciation
3. Grammar: correctness of grammar and sentence structure
4. Cultural Nuance: appropriateness for American business English

Return STRICT JSON only:
{{
  "fluencyScore": number,
  "pronunciationScore": number,
  "grammarScore": number,
  "culturalNuanceScore": number,
  "feedback": "detailed feedback about their performance",
  "suggestions": ["suggestion 1", "suggestion 2", "suggestion 3"]
}}
""".strip()


def build_tutor_system_prompt(context: Optional[str]) -> str:
	prompt = (
		"You are an expert English language tutor specializing in business English and call center communication.\n"
		"Your role is to help Egyptian learners improve their English for call center work.\n"
		"Provide clear, practical explanations with examples relevant to call center scenarios.\n"
		'When possible answer as JSON with keys "answer", "explanation", "examples" (array) and "relatedTopics" (array).'
	)
	if context:
		prompt += f"\nContext: {context}"
	return prompt


def build_quiz_prompt(category: str, difficulty: str, count: int) -> str:
	return f"""
Generate {count} multiple choice quiz questions for English learners at {difficulty} level.
Category: {category}
Context: Call center communication and business English

For each question provide:
- question: the quiz question
- options: array of 4 answer options
- correctAnswer: index of the correct answer (0-3)
- explanation: why this is correct

Return a JSON array of objects only.
""".strip()


def build_scenario_prompt(
	user_response: str,
	scenario_description: str,
	customer_persona: Any,
	expected_responses: Sequence[str],
) -> str:
	return f"""
You are evaluating a call center agent's response to a customer scenario.

Scenario: {scenario_description}
Customer Profile: {json.dumps(customer_persona)}
Expected Response Examples: {"; ".join(expected_responses)}
User's Response: "{user_response}"

Return STRICT JSON only:
{{
  "score": number (0-100),
  "feedback": "overall feedback",
  "strengths": ["strength 1", "strength 2"],
  "improvements": ["improvement 1", "improvement 2"]
}}
""".strip()


def build_recommendations_prompt(progress: Dict[str, Any], weak_skills: Sequence[str]) -> str:
	return f"""
Based on a learner's progress in an English course for call center agents:

Current Progress:
- Module: {progress.get("currentModule")}/3
- Week: {progress.get("currentWeek")}/4
- Mastery Score: {progress.get("overallMasteryScore")}%
- Hours Completed: {progress.get("totalHoursCompleted")}

Weak Skills: {", ".join(weak_skills) or "none recorded"}

Return STRICT JSON only:
{{
  "recommendations": ["recommendation 1", "recommendation 2", "recommendation 3"],
  "focusAreas": ["area 1", "area 2"],
  "estimatedTimeToB2": integer number of weeks
}}
""".strip()


# ---------------------------------------------------------------------------
# Provider calls
# ---------------------------------------------------------------------------

async def _complete(prompt: str, *, system: Optional[str] = None) -> str:
	client = OpenAIClient()
	try:
		return await client.generate(prompt, system=system)
	finally:
		await client.aclose()


async def analyze_speaking_session(
	transcript: str,
	scenario_type: str,
	expected_responses: Sequence[str],
) -> Dict[str, Any]:
	raw = await _complete(build_speaking_prompt(transcript, scenario_type, expected_responses))
	return parse_speaking_feedback(raw)


async def generate_tutor_response(question: str, context: Optional[str] = None) -> Dict[str, Any]:
	raw = await _complete(question, system=build_tutor_system_prompt(context))
	return parse_tutor_response(raw)


async def generate_quiz_questions(category: str, difficulty: str, count: int = 5) -> List[Dict[str, Any]]:
	raw = await _complete(build_quiz_prompt(category, difficulty, count))
	return parse_quiz_questions(raw)


async def evaluate_scenario_response(
	user_response: str,
	scenario_description: str,
	customer_persona: Any,
	expected_responses: Sequence[str],
) -> Dict[str, Any]:
	raw = await _complete(
		build_scenario_prompt(user_response, scenario_description, customer_persona, expected_responses)
	)
	return parse_scenario_evaluation(raw)


async def generate_learning_recommendations(progress: Dict[str, Any], weak_skills: Sequence[str]) -> Dict[str, Any]:
	raw = await _complete(build_recommendations_prompt(progress, weak_skills))
	return parse_recommendations(raw)
