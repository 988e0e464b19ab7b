from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from prepcoach.errors import TopicNotFoundError
from prepcoach.models import Progress, Status, Topic
from prepcoach.services.curriculum import category_for_slug


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubtopicSelection:
	topic_id: str
	subtopic_id: Optional[str]
	created: bool = False

	@property
	def all_completed(self) -> bool:
		return self.subtopic_id is None


def _now() -> datetime:
	return datetime.now(timezone.utc)


def main_topic(db: Session, category: str) -> Topic:
	"""Top-level topic for a category name or URL slug."""
	name = category_for_slug(category) or category
	topic = db.scalar(
		select(Topic)
		.where(Topic.category == name, Topic.parent_id.is_(None))
		.order_by(Topic.position, Topic.id)
		.limit(1)
	)
	if topic is None:
		raise TopicNotFoundError(f"No main topic found for category: {category}")
	return topic


def topic_record(db: Session, user_id: str, topic_id: str) -> Optional[Progress]:
	return db.scalar(
		select(Progress).where(
			Progress.user_id == user_id,
			Progress.topic_id == topic_id,
			Progress.subtopic_id.is_(None),
		)
	)


def subtopic_records(db: Session, user_id: str, topic_id: str) -> Dict[str, Progress]:
	rows = db.scalars(
		select(Progress).where(
			Progress.user_id == user_id,
			Progress.topic_id == topic_id,
			Progress.subtopic_id.is_not(None),
		)
	).all()
	return {row.subtopic_id: row for row in rows}


def _get_or_create(db: Session, lookup, record: Progress) -> tuple[Progress, bool]:
	"""Insert `record` unless `lookup()` finds one; a lost race re-fetches."""
	existing = lookup()
	if existing is not None:
		return existing, False
	db.add(record)
	try:
		db.commit()
	except IntegrityError:
		db.rollback()
		existing = lookup()
		if existing is None:
			raise
		return existing, False
	return record, True


def _mark_in_progress(db: Session, user_id: str, topic: Topic, subtopic_id: str) -> None:
	"""Make `subtopic_id` the only in-progress child of `topic`."""
	children = subtopic_records(db, user_id, topic.id)
	for child_id, row in children.items():
		if child_id != subtopic_id and row.status is Status.IN_PROGRESS:
			row.status = Status.NOT_STARTED
	row = children.get(subtopic_id)
	if row is None:
		row, _ = _get_or_create(
			db,
			lambda: db.scalar(select(Progress).where(
				Progress.user_id == user_id,
				Progress.topic_id == topic.id,
				Progress.subtopic_id == subtopic_id,
			)),
			Progress(
				user_id=user_id,
				topic_id=topic.id,
				subtopic_id=subtopic_id,
				status=Status.IN_PROGRESS,
				progress_percentage=0,
			),
		)
	if row.status is not Status.COMPLETE:
		row.status = Status.IN_PROGRESS
	db.commit()


def next_incomplete_subtopic(topic: Topic, completed: set) -> Optional[Topic]:
	for child in topic.children:
		if child.id not in completed:
			return child
	return None


def _completed_ids(db: Session, user_id: str, topic_id: str) -> set:
	return {
		child_id for child_id, row in subtopic_records(db, user_id, topic_id).items()
		if row.status is Status.COMPLETE
	}


def select_target_subtopic(db: Session, user_id: str, category: str) -> SubtopicSelection:
	"""Decide which subtopic of a category the user should work on.

	Order is the subtopics' declaration order; prerequisites are not
	consulted.
	"""
	topic = main_topic(db, category)
	if not topic.children:
		raise TopicNotFoundError(f"No subtopics available for topic: {topic.id}")

	first = topic.children[0]
	record, created = _get_or_create(
		db,
		lambda: topic_record(db, user_id, topic.id),
		Progress(
			user_id=user_id,
			topic_id=topic.id,
			status=Status.IN_PROGRESS,
			current_subtopic_id=first.id,
			progress_percentage=0,
		),
	)
	if created:
		_mark_in_progress(db, user_id, topic, first.id)
		logger.info("Started %s for user %s at %s", topic.id, user_id, first.id)
		return SubtopicSelection(topic.id, first.id, created=True)

	if record.current_subtopic_id:
		return SubtopicSelection(topic.id, record.current_subtopic_id)

	following = next_incomplete_subtopic(topic, _completed_ids(db, user_id, topic.id))
	if following is None:
		return SubtopicSelection(topic.id, None)

	record.current_subtopic_id = following.id
	record.status = Status.IN_PROGRESS
	db.commit()
	_mark_in_progress(db, user_id, topic, following.id)
	return SubtopicSelection(topic.id, following.id)


def complete_subtopic(db: Session, user_id: str, subtopic_id: str) -> Progress:
	"""Mark a subtopic complete and advance the topic's pointer.

	Returns the topic-level record.
	"""
	subtopic = db.get(Topic, subtopic_id)
	if subtopic is None or subtopic.parent_id is None:
		raise TopicNotFoundError(f"Unknown subtopic: {subtopic_id}")
	topic = subtopic.parent

	record, _ = _get_or_create(
		db,
		lambda: topic_record(db, user_id, topic.id),
		Progress(user_id=user_id, topic_id=topic.id, status=Status.IN_PROGRESS, progress_percentage=0),
	)
	child, _ = _get_or_create(
		db,
		lambda: subtopic_records(db, user_id, topic.id).get(subtopic_id),
		Progress(user_id=user_id, topic_id=topic.id, subtopic_id=subtopic_id, status=Status.NOT_STARTED),
	)
	if child.status is not Status.COMPLETE:
		child.status = Status.COMPLETE
		child.progress_percentage = 100
		child.completed_at = _now()

	completed = _completed_ids(db, user_id, topic.id) | {subtopic_id}
	record.progress_percentage = round(100 * len(completed) / len(topic.children))
	following = next_incomplete_subtopic(topic, completed)
	if following is None:
		record.status = Status.COMPLETE
		record.current_subtopic_id = None
		record.completed_at = record.completed_at or _now()
		db.commit()
	else:
		record.status = Status.IN_PROGRESS
		record.current_subtopic_id = following.id
		db.commit()
		_mark_in_progress(db, user_id, topic, following.id)
	db.refresh(record)
	logger.info("User %s completed %s (%s%% of %s)", user_id, subtopic_id, record.progress_percentage, topic.id)
	return record


def _progress_view(row: Optional[Progress]) -> Dict[str, Any]:
	if row is None:
		return {
			"status": Status.NOT_STARTED,
			"progress_percentage": 0,
			"completed_at": None,
			"current_subtopic_id": None,
		}
	return {
		"status": row.status,
		"progress_percentage": row.progress_percentage,
		"completed_at": row.completed_at,
		"current_subtopic_id": row.current_subtopic_id,
	}


def _node_view(topic: Topic, progress: Dict[str, Any]) -> Dict[str, Any]:
	return {
		"id": topic.id,
		"name": topic.name,
		"category": topic.category,
		"difficulty": topic.difficulty,
		"description": topic.description,
		"prerequisites": list(topic.prerequisites or []),
		"progress": progress,
	}


def get_topic_hierarchy(db: Session, user_id: str) -> List[Dict[str, Any]]:
	"""Every top-level topic with the user's progress and its subtopics."""
	topics = db.scalars(select(Topic).where(Topic.parent_id.is_(None)).order_by(Topic.id)).all()
	hierarchy: List[Dict[str, Any]] = []
	for topic in topics:
		record = topic_record(db, user_id, topic.id)
		children = subtopic_records(db, user_id, topic.id)
		node = _node_view(topic, _progress_view(record))
		current = record.current_subtopic_id if record else None
		subtopics = []
		for child in topic.children:
			view = _progress_view(children.get(child.id))
			view["current_subtopic_id"] = None
			if child.id == current:
				view["status"] = Status.IN_PROGRESS
			subtopics.append(_node_view(child, view))
		node["subtopics"] = subtopics
		hierarchy.append(node)
	return hierarchy
