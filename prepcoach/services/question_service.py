from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from prepcoach.database import run_in_thread
from prepcoach.errors import QuestionNotFoundError, TopicNotFoundError
from prepcoach.models import Difficulty, Question, Topic
from prepcoach.services.llm_service import llm_service


logger = logging.getLogger(__name__)


def stored_question(db: Session, topic_id: str) -> Optional[Question]:
	return db.scalar(
		select(Question)
		.where(Question.topic_id == topic_id)
		.order_by(Question.created_at, Question.id)
		.limit(1)
	)


def _examples(raw: Any) -> List[Dict[str, str]]:
	return [
		{
			"input": str(item.get("input", "")),
			"output": str(item.get("output", "")),
			"explanation": str(item.get("explanation", "")),
		}
		for item in (raw or []) if isinstance(item, dict)
	]


def _test_cases(raw: Any) -> List[Dict[str, Any]]:
	return [
		{
			"input": str(item.get("input", "")),
			"expected_output": str(item.get("output", item.get("expectedOutput", ""))),
			"is_hidden": bool(item.get("isHidden", item.get("is_hidden", False))),
		}
		for item in (raw or []) if isinstance(item, dict)
	]


def question_from_payload(topic_id: str, difficulty: Difficulty, data: Dict[str, Any]) -> Question:
	return Question(
		topic_id=topic_id,
		title=data.get("title") or "Untitled Question",
		description=data.get("description") or "",
		difficulty=difficulty,
		constraints=[str(c) for c in (data.get("constraints") or [])],
		examples=_examples(data.get("examples")),
		test_cases=_test_cases(data.get("testCases") or data.get("test_cases")),
	)


def _topic_name(db: Session, topic_id: str) -> str:
	topic = db.get(Topic, topic_id)
	if topic is None:
		raise TopicNotFoundError(topic_id)
	return topic.name


def _save_question(db: Session, question: Question) -> Question:
	db.add(question)
	db.commit()
	db.refresh(question)
	return question


def _get_question(db: Session, question_id: str) -> Question:
	question = db.get(Question, question_id)
	if question is None:
		raise QuestionNotFoundError(question_id)
	return question


async def get_or_generate_question(
	db: Session,
	topic_id: str,
	difficulty: Difficulty = Difficulty.BEGINNER,
) -> tuple[Question, bool]:
	"""Return the stored question for a topic, generating one if needed.

	The second element is True when a new question was generated.
	"""
	existing = await run_in_thread(stored_question, db, topic_id)
	if existing is not None:
		return existing, False

	topic_name = await run_in_thread(_topic_name, db, topic_id)
	data = await llm_service.generate_question(topic_name, difficulty.value)
	question = await run_in_thread(_save_question, db, question_from_payload(topic_id, difficulty, data))
	logger.info("Generated question %s for %s", question.id, topic_id)
	return question, True


async def question_hint(db: Session, question_id: str) -> str:
	question = await run_in_thread(_get_question, db, question_id)
	return await llm_service.generate_hint(f"{question.title}\n\n{question.description}")
