"""Reference content: week-one lessons and the role-play scenarios.

Run ``python -m callcenter_english.seed`` (or ``callcenter-english-seed``)
against the configured ``DATABASE_URL``. Tables that already hold rows are
left alone.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from .db import Base, SessionLocal, engine
from .models import Lesson, Scenario

logger = logging.getLogger(__name__)

LESSONS: List[Dict[str, Any]] = [
	{"module": 1, "week": 1, "day": 1, "lesson_title": "Introduction to English Basics", "lesson_content": "Learn the fundamentals of English grammar and pronunciation.", "lesson_type": "Grammar", "duration": 60},
	{"module": 1, "week": 1, "day": 1, "lesson_title": "Basic Vocabulary for Call Centers", "lesson_content": "Essential vocabulary used in call center environments.", "lesson_type": "Vocabulary", "duration": 45},
	{"module": 1, "week": 1, "day": 2, "lesson_title": "Listening Comprehension - Part 1", "lesson_content": "Practice listening to native English speakers.", "lesson_type": "Listening", "duration": 50},
	{"module": 1, "week": 1, "day": 2, "lesson_title": "Speaking Practice - Greetings", "lesson_content": "Learn professional greetings and introductions.", "lesson_type": "Speaking", "duration": 40},
	{"module": 1, "week": 1, "day": 3, "lesson_title": "Cultural Communication - American English", "lesson_content": "Understand American communication styles and expectations.", "lesson_type": "Cultural", "duration": 55},
	{"module": 1, "week": 1, "day": 3, "lesson_title": "Present Simple Tense", "lesson_content": "Master the present simple tense for everyday conversations.", "lesson_type": "Grammar", "duration": 50},
	{"module": 1, "week": 1, "day": 4, "lesson_title": "Customer Service Phrases", "lesson_content": "Learn essential phrases for customer service interactions.", "lesson_type": "Vocabulary", "duration": 45},
	{"module": 1, "week": 1, "day": 4, "lesson_title": "Listening Comprehension - Part 2", "lesson_content": "Advanced listening practice with various accents.", "lesson_type": "Listening", "duration": 55},
	{"module": 1, "week": 1, "day": 5, "lesson_title": "Weekly Review and Quiz", "lesson_content": "Review all lessons from the week and take a comprehensive quiz.", "lesson_type": "Grammar", "duration": 90},
]

SCENARIOS: List[Dict[str, Any]] = [
	{
		"scenario_name": "Basic Customer Greeting",
		"scenario_description": "Practice greeting a customer and taking their information.",
		"difficulty": "Beginner",
		"customer_persona": {"name": "John Smith", "mood": "neutral", "accent": "American", "patience": "high"},
		"expected_responses": [
			"Hello, thank you for calling. How can I help you today?",
			"Good morning, what can I assist you with?",
			"Hi there, welcome. What brings you in today?",
		],
		"cultural_context": "American customers expect friendly, professional greetings. Use a warm tone and be ready to help immediately.",
	},
	{
		"scenario_name": "Handling a Simple Request",
		"scenario_description": "Help a customer with a straightforward request.",
		"difficulty": "Beginner",
		"customer_persona": {"name": "Sarah Johnson", "mood": "neutral", "accent": "American", "patience": "high"},
		"expected_responses": [
			"I can help you with that. Let me check the system.",
			"Of course, I'll be happy to assist you.",
			"Absolutely, I'll take care of that for you right away.",
		],
		"cultural_context": "Be helpful and proactive in offering solutions. American customers appreciate efficiency and politeness.",
	},
	{
		"scenario_name": "Dealing with a Frustrated Customer",
		"scenario_description": "Practice de-escalation techniques with an upset customer.",
		"difficulty": "Intermediate",
		"customer_persona": {"name": "Mike Brown", "mood": "frustrated", "accent": "American", "patience": "low"},
		"expected_responses": [
			"I understand your frustration. Let me help resolve this for you.",
			"I apologize for the inconvenience. What can I do to make this right?",
			"I hear you, and I want to make sure we fix this. Let's work through this together.",
		],
		"cultural_context": "Empathy and active listening are crucial for upset customers. Acknowledge their feelings and take ownership of the problem.",
	},
	{
		"scenario_name": "Technical Troubleshooting",
		"scenario_description": "Guide a customer through a technical issue.",
		"difficulty": "Advanced",
		"customer_persona": {"name": "Emily Davis", "mood": "confused", "accent": "British", "patience": "medium"},
		"expected_responses": [
			"Let's troubleshoot this step by step. First, can you tell me what error you're seeing?",
			"I'll walk you through the solution. Please follow these steps carefully.",
			"No problem, I'll help you get this sorted. Let's start with the basics.",
		],
		"cultural_context": "British customers may be more formal and reserved. Use clear, step-by-step instructions and be patient.",
	},
	{
		"scenario_name": "Upselling a Product",
		"scenario_description": "Suggest additional products or services to a customer.",
		"difficulty": "Intermediate",
		"customer_persona": {"name": "Robert Wilson", "mood": "neutral", "accent": "American", "patience": "medium"},
		"expected_responses": [
			"Based on your needs, I think you might also benefit from our premium package.",
			"Many of our customers in your situation find our additional service very helpful.",
			"Would you be interested in hearing about our upgraded plan?",
		],
		"cultural_context": "American customers respond well to value propositions. Be honest and helpful, not pushy.",
	},
	{
		"scenario_name": "Handling a Complaint",
		"scenario_description": "Address a customer's complaint professionally.",
		"difficulty": "Intermediate",
		"customer_persona": {"name": "Jennifer Lee", "mood": "angry", "accent": "American", "patience": "low"},
		"expected_responses": [
			"I sincerely apologize for the poor experience. Let me make this right for you.",
			"I understand why you're upset, and I take full responsibility. Here's what I'll do...",
			"Thank you for bringing this to my attention. We take complaints seriously.",
		],
		"cultural_context": "Take complaints seriously and offer concrete solutions. American customers appreciate accountability and quick action.",
	},
	{
		"scenario_name": "Closing a Call Professionally",
		"scenario_description": "End a call with a customer in a professional manner.",
		"difficulty": "Beginner",
		"customer_persona": {"name": "David Martinez", "mood": "satisfied", "accent": "American", "patience": "high"},
		"expected_responses": [
			"Thank you for calling. Is there anything else I can help you with today?",
			"I'm glad I could help. Have a great day!",
			"Thank you for choosing us. We appreciate your business.",
		],
		"cultural_context": "End on a positive note. Summarize what was done and offer future assistance.",
	},
	{
		"scenario_name": "Handling a Billing Issue",
		"scenario_description": "Address a customer's billing or payment concern.",
		"difficulty": "Advanced",
		"customer_persona": {"name": "Lisa Anderson", "mood": "concerned", "accent": "American", "patience": "medium"},
		"expected_responses": [
			"I understand your concern about the billing. Let me review your account.",
			"I'll investigate this for you right away. Can you provide your account number?",
			"Thank you for bringing this to our attention. We'll make sure this is resolved.",
		],
		"cultural_context": "Billing issues are sensitive. Be thorough, transparent, and offer solutions quickly.",
	},
]


def seed_database(db: Session) -> Dict[str, int]:
	inserted = {"lessons": 0, "scenarios": 0}
	if db.query(Lesson).first() is None:
		db.add_all(Lesson(**row) for row in LESSONS)
		inserted["lessons"] = len(LESSONS)
	if db.query(Scenario).first() is None:
		db.add_all(Scenario(**row) for row in SCENARIOS)
		inserted["scenarios"] = len(SCENARIOS)
	db.commit()
	logger.info("Seeded %d lessons and %d scenarios", inserted["lessons"], inserted["scenarios"])
	return inserted


def main() -> None:
	logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
	Base.metadata.create_all(bind=engine)
	db = SessionLocal()
	try:
		seed_database(db)
	finally:
		db.close()


if __name__ == "__main__":
	main()
