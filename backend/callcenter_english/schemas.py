"""Shared pydantic models for the JSON surface.

The REST API speaks camelCase; Python attributes stay snake_case and map via
an alias generator. Row models read straight from ORM instances.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

	def to_json(self) -> Dict[str, Any]:
		return self.model_dump(mode="json", by_alias=True)


class UserOut(CamelModel):
	id: int
	email: str
	first_name: str
	last_name: str
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None


class ProgressOut(CamelModel):
	id: int
	user_id: int
	current_module: int
	current_week: int
	overall_mastery_score: float
	total_hours_completed: float
	start_date: Optional[datetime] = None
	expected_completion_date: Optional[datetime] = None
	updated_at: Optional[datetime] = None


class SkillOut(CamelModel):
	id: int
	user_id: int
	skill_name: str
	skill_category: str
	mastery_score: float
	practice_count: int
	last_practiced_at: Optional[datetime] = None


class QuizResultOut(CamelModel):
	id: int
	user_id: int
	quiz_type: str
	score: float
	total_questions: int
	correct_answers: int
	time_spent_seconds: Optional[int] = None
	completed_at: Optional[datetime] = None


class SpeakingSessionOut(CamelModel):
	id: int
	user_id: int
	scenario_type: str
	duration: int
	fluency_score: Optional[float] = None
	pronunciation_score: Optional[float] = None
	grammar_score: Optional[float] = None
	cultural_nuance_score: Optional[float] = None
	overall_score: Optional[float] = None
	recording_url: Optional[str] = None
	ai_transcript: Optional[str] = None
	ai_feedback: Optional[str] = None
	completed_at: Optional[datetime] = None


class LessonOut(CamelModel):
	id: int
	module: int
	week: int
	day: int
	lesson_title: str
	lesson_content: str
	lesson_type: str
	duration: int


class LessonProgressOut(CamelModel):
	id: int
	user_id: int
	lesson_id: int
	completed: bool
	completed_at: Optional[datetime] = None
	time_spent_seconds: int
	score: Optional[float] = None


class ScenarioOut(CamelModel):
	id: int
	scenario_name: str
	scenario_description: Optional[str] = None
	difficulty: str
	customer_persona: Optional[Dict[str, Any]] = None
	expected_responses: Optional[List[str]] = None
	cultural_context: Optional[str] = None


class ScenarioAttemptOut(CamelModel):
	id: int
	user_id: int
	scenario_id: int
	attempt_number: int
	user_response: Optional[str] = None
	ai_evaluation: Optional[Dict[str, Any]] = None
	completed_at: Optional[datetime] = None


class AssessmentResultOut(CamelModel):
	id: int
	user_id: int
	assessment_type: str
	score: float
	passing_score: float
	passed: bool
	feedback: Optional[str] = None
	completed_at: Optional[datetime] = None


class CertificationOut(CamelModel):
	id: int
	user_id: int
	certification_level: str
	issued_date: Optional[datetime] = None
	expiry_date: Optional[datetime] = None
	certificate_url: Optional[str] = None


def dump(model_cls: type[CamelModel], row: Any) -> Dict[str, Any]:
	"""Serialize one ORM row through ``model_cls``."""
	return model_cls.model_validate(row).to_json()


def dump_all(model_cls: type[CamelModel], rows: List[Any]) -> List[Dict[str, Any]]:
	return [dump(model_cls, r) for r in rows]
