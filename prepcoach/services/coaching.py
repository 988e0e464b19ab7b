"""Chat-turn and evaluation flows built on the scoring components."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from prepcoach.database import run_in_thread
from prepcoach.errors import NoQuestionError
from prepcoach.models import ChatMessage, ChatSession, CodeSubmission, MessageSender, MessageType, PerformanceTarget
from prepcoach.services import session_manager
from prepcoach.services.evaluation_parser import extract_areas_needing_improvement, parse_scores
from prepcoach.services.llm_service import llm_service
from prepcoach.services.performance_targets import (
	TargetInitResult,
	ensure_performance_target,
	get_performance_target,
)
from prepcoach.services.progress_comparator import (
	Readiness,
	assess_readiness,
	build_focus_section,
	compose_feedback,
	metrics_needing_improvement,
)
from prepcoach.services.title_extractor import DEFAULT_TITLE


logger = logging.getLogger(__name__)

AREAS_LOOKBACK = 3
QUESTION_MARKER = "Problem Title:"


@dataclass
class ChatTurnResult:
	user_message: ChatMessage
	reply: ChatMessage
	target_init: TargetInitResult


@dataclass
class EvaluationOutcome:
	submission: CodeSubmission
	message: ChatMessage
	scores: Dict[str, int]
	target: Optional[PerformanceTarget] = None
	needs_improvement: List[str] = field(default_factory=list)
	readiness: Optional[Readiness] = None
	feedback: Optional[str] = None


@dataclass
class ProgressReport:
	scores: Dict[str, int]
	target: Optional[PerformanceTarget]
	needs_improvement: List[str]
	areas_needing_improvement: List[str]
	readiness: Optional[Readiness]
	feedback: Optional[str]


def classify_reply(text: str) -> MessageType:
	return MessageType.QUESTION if QUESTION_MARKER in text else MessageType.GENERAL


def current_scores(db: Session, session_id: str) -> Dict[str, int]:
	evaluation = session_manager.current_evaluation(db, session_id)
	if evaluation is None:
		return {}
	return parse_scores(evaluation.content).scores


def focus_section(db: Session, chat_session: ChatSession, target: Optional[PerformanceTarget]) -> str:
	areas = extract_areas_needing_improvement(
		session_manager.evaluation_texts(db, chat_session.id), limit=AREAS_LOOKBACK
	)
	return build_focus_section(current_scores(db, chat_session.id), target, areas)


def _open_turn(db: Session, chat_session: ChatSession, text: str):
	prior = session_manager.history(db, chat_session.id)
	user_message = session_manager.append_message(db, chat_session, MessageSender.USER, text)
	init = ensure_performance_target(db, chat_session, text)
	return prior, user_message, init, focus_section(db, chat_session, init.target)


async def handle_chat_turn(db: Session, chat_session: ChatSession, text: str) -> ChatTurnResult:
	prior, user_message, init, focus = await run_in_thread(_open_turn, db, chat_session, text)
	target = init.target
	reply_text = await llm_service.tutor_reply(
		prior,
		text,
		target_job_title=target.target_job_title if target else None,
		focus_section=focus,
	)
	reply = await run_in_thread(
		session_manager.append_message,
		db, chat_session, MessageSender.ASSISTANT, reply_text, classify_reply(reply_text),
	)
	return ChatTurnResult(user_message=user_message, reply=reply, target_init=init)


def _problem_and_target(db: Session, chat_session: ChatSession):
	problem = session_manager.current_problem(db, chat_session.id)
	if problem is None:
		raise NoQuestionError(chat_session.id)
	return problem, get_performance_target(db, chat_session.id)


def _store_evaluation(db: Session, chat_session: ChatSession, code: str, language: str, evaluation_text: str):
	submission = session_manager.save_code_submission(db, chat_session, code, language)
	message = session_manager.append_message(
		db, chat_session, MessageSender.ASSISTANT, evaluation_text, MessageType.EVALUATION
	)
	return submission, message


async def evaluate_submission(
	db: Session,
	chat_session: ChatSession,
	code: str,
	language: str,
	rng: Optional[random.Random] = None,
) -> EvaluationOutcome:
	"""Evaluate code against the session's current problem.

	Nothing is stored unless the evaluation comes back.
	"""
	problem, target = await run_in_thread(_problem_and_target, db, chat_session)
	job_title = target.target_job_title if target else DEFAULT_TITLE
	evaluation_text = await llm_service.evaluate_code(problem.content, code, language, job_title)
	submission, message = await run_in_thread(
		_store_evaluation, db, chat_session, code, language, evaluation_text
	)

	parsed = parse_scores(evaluation_text)
	outcome = EvaluationOutcome(submission=submission, message=message, scores=parsed.scores, target=target)
	if not parsed.found:
		logger.info("No metric scores found in evaluation for session %s", chat_session.id)
	if target is not None:
		outcome.needs_improvement = metrics_needing_improvement(parsed.scores, target)
		outcome.readiness = assess_readiness(parsed.scores, target)
		outcome.feedback = compose_feedback(parsed.scores, target, rng)
	return outcome


def progress_report(db: Session, chat_session: ChatSession, rng: Optional[random.Random] = None) -> ProgressReport:
	scores = current_scores(db, chat_session.id)
	target = get_performance_target(db, chat_session.id)
	areas = extract_areas_needing_improvement(
		session_manager.evaluation_texts(db, chat_session.id), limit=AREAS_LOOKBACK
	)
	if target is None:
		return ProgressReport(scores, None, [], areas, None, None)
	return ProgressReport(
		scores=scores,
		target=target,
		needs_improvement=metrics_needing_improvement(scores, target),
		areas_needing_improvement=areas,
		readiness=assess_readiness(scores, target),
		feedback=compose_feedback(scores, target, rng),
	)
