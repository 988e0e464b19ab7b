from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from prepcoach.models import ChatSession, PerformanceTarget
from prepcoach.services import session_manager
from prepcoach.services.job_levels import JobLevelResolver, job_level_resolver
from prepcoach.services.title_extractor import TitleExtractor, title_extractor


logger = logging.getLogger(__name__)


class InitStatus(str, enum.Enum):
	CREATED = "created"
	ALREADY_EXISTS = "already_exists"
	TITLE_NOT_FOUND = "title_not_found"


@dataclass(frozen=True)
class TargetInitResult:
	status: InitStatus
	target: Optional[PerformanceTarget] = None

	@property
	def created(self) -> bool:
		return self.status is InitStatus.CREATED


def get_performance_target(db: Session, session_id: str) -> Optional[PerformanceTarget]:
	return db.scalar(select(PerformanceTarget).where(PerformanceTarget.session_id == session_id))


def build_target(
	user_id: str,
	session_id: str,
	job_title: str,
	resolver: JobLevelResolver = job_level_resolver,
) -> PerformanceTarget:
	scores = resolver.targets_for_title(job_title)
	return PerformanceTarget(
		user_id=user_id,
		session_id=session_id,
		target_job_title=job_title,
		total_score=sum(scores.values()),
		**scores,
	)


def maybe_initialize(
	db: Session,
	session: ChatSession,
	history: Sequence[Mapping[str, str]],
	latest_user_message: str = "",
	*,
	default_title: Optional[str] = None,
	extractor: TitleExtractor = title_extractor,
	resolver: JobLevelResolver = job_level_resolver,
) -> TargetInitResult:
	"""Create the session's PerformanceTarget once.

	The unique constraint on `session_id` arbitrates concurrent callers: the
	losing insert is rolled back and the surviving row is returned.
	"""
	existing = get_performance_target(db, session.id)
	if existing is not None:
		return TargetInitResult(InitStatus.ALREADY_EXISTS, existing)

	turns: List[Mapping[str, str]] = list(history)
	if latest_user_message and not (
		turns and turns[-1].get("role") == "user" and turns[-1].get("content") == latest_user_message
	):
		turns.append({"role": "user", "content": latest_user_message})

	job_title = extractor.extract_title_from_history(turns) or (default_title or "")
	if not job_title:
		return TargetInitResult(InitStatus.TITLE_NOT_FOUND)

	target = build_target(session.user_id, session.id, job_title, resolver)
	db.add(target)
	try:
		db.commit()
	except IntegrityError:
		db.rollback()
		logger.info("Performance target for session %s was created concurrently", session.id)
		return TargetInitResult(InitStatus.ALREADY_EXISTS, get_performance_target(db, session.id))

	db.refresh(target)
	logger.info(
		"Initialized performance target for session %s: %s (total %d)",
		session.id, job_title, target.total_score,
	)
	return TargetInitResult(InitStatus.CREATED, target)


def ensure_performance_target(
	db: Session,
	session: ChatSession,
	latest_user_message: str = "",
	*,
	default_title: Optional[str] = None,
) -> TargetInitResult:
	"""Explicit ensure-initialized step run at the start of each chat turn."""
	existing = get_performance_target(db, session.id)
	if existing is not None:
		return TargetInitResult(InitStatus.ALREADY_EXISTS, existing)
	return maybe_initialize(db, session, session_manager.history(db, session.id), latest_user_message, default_title=default_title)
