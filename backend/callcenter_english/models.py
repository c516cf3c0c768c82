from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from .db import Base


def _score_column(**kwargs) -> Column:
	# 0-100 with two decimals, surfaced as float
	return Column(Numeric(5, 2, asdecimal=False), **kwargs)


class User(Base):
	__tablename__ = "users"
	id = Column(Integer, primary_key=True, index=True)
	email = Column(String(256), unique=True, nullable=False, index=True)
	password_hash = Column(String(256), nullable=False)
	first_name = Column(String(128), nullable=False)
	last_name = Column(String(128), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	progress = relationship("UserProgress", back_populates="user", uselist=False)
	skills = relationship("SkillMastery", back_populates="user")
	certification = relationship("Certification", back_populates="user", uselist=False)


class UserProgress(Base):
	__tablename__ = "user_progress"
	id = Column(Integer, primary_key=True)
	# One progress row per user
	user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
	current_module = Column(Integer, default=1, nullable=False)  # 1-3
	current_week = Column(Integer, default=1, nullable=False)  # 1-4
	overall_mastery_score = _score_column(default=0.0, nullable=False)
	total_hours_completed = Column(Numeric(8, 2, asdecimal=False), default=0.0, nullable=False)
	start_date = Column(DateTime, default=datetime.utcnow, nullable=False)
	expected_completion_date = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	user = relationship("User", back_populates="progress")


class SkillMastery(Base):
	__tablename__ = "skill_mastery"
	__table_args__ = (UniqueConstraint("user_id", "skill_name", name="uq_skill_mastery_user_skill"),)
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	skill_name = Column(String(128), nullable=False)  # e.g. "Past Perfect", "De-escalation"
	skill_category = Column(String(64), nullable=False)  # "Grammar", "CallCenter", "Cultural"
	mastery_score = _score_column(default=0.0, nullable=False)
	practice_count = Column(Integer, default=0, nullable=False)
	last_practiced_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	user = relationship("User", back_populates="skills")


class QuizResult(Base):
	__tablename__ = "quiz_results"
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	quiz_type = Column(String(64), nullable=False)  # "Grammar", "Vocabulary", "Listening", "Speaking", "Cultural"
	score = _score_column(nullable=False)
	total_questions = Column(Integer, nullable=False)
	correct_answers = Column(Integer, nullable=False)
	time_spent_seconds = Column(Integer, nullable=True)
	completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class SpeakingSession(Base):
	__tablename__ = "speaking_sessions"
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	scenario_type = Column(String(128), nullable=False)  # "BasicGreeting", "ComplaintHandling", ...
	duration = Column(Integer, default=0, nullable=False)  # seconds
	fluency_score = _score_column(nullable=True)
	pronunciation_score = _score_column(nullable=True)
	grammar_score = _score_column(nullable=True)
	cultural_nuance_score = _score_column(nullable=True)
	overall_score = _score_column(nullable=True)
	recording_url = Column(Text, nullable=True)
	ai_transcript = Column(Text, nullable=True)
	ai_feedback = Column(Text, nullable=True)
	completed_at = Column(DateTime, default=datetime.utcnow, nullable=True)


class Lesson(Base):
	__tablename__ = "lessons"
	id = Column(Integer, primary_key=True)
	module = Column(Integer, nullable=False, index=True)  # 1-3
	week = Column(Integer, nullable=False, index=True)  # 1-4
	day = Column(Integer, nullable=False)  # 1-5
	lesson_title = Column(String(256), nullable=False)
	lesson_content = Column(Text, nullable=False)
	lesson_type = Column(String(64), nullable=False)
	duration = Column(Integer, nullable=False)  # minutes
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserLessonProgress(Base):
	__tablename__ = "user_lesson_progress"
	__table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_lesson_progress_user_lesson"),)
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=False)
	completed = Column(Boolean, default=False, nullable=False)
	completed_at = Column(DateTime, nullable=True)
	time_spent_seconds = Column(Integer, default=0, nullable=False)
	score = _score_column(nullable=True)


class Scenario(Base):
	__tablename__ = "scenarios"
	id = Column(Integer, primary_key=True)
	scenario_name = Column(String(256), nullable=False)
	scenario_description = Column(Text, nullable=True)
	difficulty = Column(String(32), nullable=False, index=True)  # "Beginner", "Intermediate", "Advanced"
	customer_persona = Column(JSON, nullable=True)
	expected_responses = Column(JSON, nullable=True)
	cultural_context = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserScenarioPractice(Base):
	__tablename__ = "user_scenario_practice"
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	scenario_id = Column(Integer, ForeignKey("scenarios.id"), nullable=False)
	attempt_number = Column(Integer, default=1, nullable=False)
	user_response = Column(Text, nullable=True)
	ai_evaluation = Column(JSON, nullable=True)
	completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AssessmentResult(Base):
	__tablename__ = "assessment_results"
	id = Column(Integer, primary_key=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	assessment_type = Column(String(64), nullable=False)  # "Written", "Listening", "Speaking", "Cultural"
	score = _score_column(nullable=False)
	passing_score = _score_column(nullable=False)
	passed = Column(Boolean, nullable=False)
	feedback = Column(Text, nullable=True)
	completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Certification(Base):
	__tablename__ = "certifications"
	id = Column(Integer, primary_key=True)
	# Unique so that concurrent issuance cannot produce duplicates
	user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
	certification_level = Column(String(8), nullable=False)
	issued_date = Column(DateTime, default=datetime.utcnow, nullable=False)
	expiry_date = Column(DateTime, nullable=True)
	certificate_url = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	user = relationship("User", back_populates="certification")
