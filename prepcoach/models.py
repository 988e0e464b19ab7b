"""ORM models for curriculum, progress, chat sessions and performance targets."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import (
	JSON,
	DateTime,
	Enum as SQLEnum,
	ForeignKey,
	Index,
	Integer,
	String,
	Text,
	UniqueConstraint,
	text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prepcoach.database import Base


def _uuid() -> str:
	return str(uuid.uuid4())


def _now() -> datetime:
	return datetime.now(timezone.utc)


class Difficulty(str, enum.Enum):
	BEGINNER = "beginner"
	EASY = "easy"
	MEDIUM = "medium"
	HARD = "hard"


class Status(str, enum.Enum):
	NOT_STARTED = "not_started"
	IN_PROGRESS = "in_progress"
	COMPLETE = "complete"


class MessageSender(str, enum.Enum):
	USER = "user"
	ASSISTANT = "assistant"


class MessageType(str, enum.Enum):
	GENERAL = "general"
	QUESTION = "question"
	EVALUATION = "evaluation"


# Attribute names of the eight evaluation metrics, in report order.
METRIC_FIELDS = (
	"problem_understanding",
	"data_structure_choice",
	"time_complexity",
	"coding_style",
	"edge_cases",
	"language_usage",
	"communication",
	"optimization",
)


class Topic(Base):
	"""Curriculum node. Top-level topics have `parent_id = None`."""
	__tablename__ = "topics"

	id: Mapped[str] = mapped_column(String(100), primary_key=True)
	name: Mapped[str] = mapped_column(String(200), nullable=False)
	category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
	difficulty: Mapped[Difficulty] = mapped_column(
		SQLEnum(Difficulty, values_callable=lambda e: [m.value for m in e]),
		nullable=False,
		default=Difficulty.BEGINNER,
	)
	description: Mapped[str] = mapped_column(Text, default="")
	prerequisites: Mapped[List[str]] = mapped_column(JSON, default=list)
	parent_id: Mapped[Optional[str]] = mapped_column(
		ForeignKey("topics.id", ondelete="CASCADE"), nullable=True, index=True
	)
	position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

	children: Mapped[List["Topic"]] = relationship(
		"Topic",
		order_by="Topic.position",
		back_populates="parent",
	)
	parent: Mapped[Optional["Topic"]] = relationship(
		"Topic", remote_side="Topic.id", back_populates="children"
	)

	def __repr__(self) -> str:
		return f"<Topic(id={self.id!r}, parent_id={self.parent_id!r})>"


class Progress(Base):
	"""Per-user progress.

	The topic-level record has `subtopic_id = None` and carries
	`current_subtopic_id`; subtopic records hang off the same `topic_id`.
	"""
	__tablename__ = "progress"

	id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
	user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
	topic_id: Mapped[str] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
	subtopic_id: Mapped[Optional[str]] = mapped_column(
		ForeignKey("topics.id", ondelete="CASCADE"), nullable=True
	)
	status: Mapped[Status] = mapped_column(
		SQLEnum(Status, values_callable=lambda e: [m.value for m in e]),
		nullable=False,
		default=Status.NOT_STARTED,
	)
	progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
	current_subtopic_id: Mapped[Optional[str]] = mapped_column(
		ForeignKey("topics.id", ondelete="SET NULL"), nullable=True
	)
	completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

	__table_args__ = (
		UniqueConstraint("user_id", "topic_id", "subtopic_id", name="uq_progress_user_topic_subtopic"),
		# NULLs are distinct in unique constraints, so topic-level rows need their own index
		Index(
			"uq_progress_user_topic",
			"user_id",
			"topic_id",
			unique=True,
			sqlite_where=text("subtopic_id IS NULL"),
			postgresql_where=text("subtopic_id IS NULL"),
		),
	)

	def __repr__(self) -> str:
		return (
			f"<Progress(user_id={self.user_id!r}, topic_id={self.topic_id!r}, "
			f"subtopic_id={self.subtopic_id!r}, status={self.status.value})>"
		)


class ChatSession(Base):
	__tablename__ = "chat_sessions"

	id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
	user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
	title: Mapped[str] = mapped_column(String(200), nullable=False, default="New Chat Session")
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

	messages: Mapped[List["ChatMessage"]] = relationship(
		"ChatMessage",
		back_populates="session",
		order_by="ChatMessage.seq",
		cascade="all, delete-orphan",
	)


class ChatMessage(Base):
	__tablename__ = "chat_messages"

	seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	session_id: Mapped[str] = mapped_column(
		ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, index=True
	)
	sender: Mapped[MessageSender] = mapped_column(
		SQLEnum(MessageSender, values_callable=lambda e: [m.value for m in e]), nullable=False
	)
	message_type: Mapped[MessageType] = mapped_column(
		SQLEnum(MessageType, values_callable=lambda e: [m.value for m in e]),
		nullable=False,
		default=MessageType.GENERAL,
	)
	content: Mapped[str] = mapped_column(Text, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

	session: Mapped[ChatSession] = relationship("ChatSession", back_populates="messages")

	@property
	def role(self) -> str:
		return self.sender.value

	def as_turn(self) -> Dict[str, str]:
		return {"role": self.sender.value, "content": self.content}


class PerformanceTarget(Base):
	"""Per-session target scores; created once, never updated."""
	__tablename__ = "performance_targets"

	id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
	user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
	session_id: Mapped[str] = mapped_column(
		ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, unique=True
	)
	target_job_title: Mapped[str] = mapped_column(String(200), nullable=False)
	problem_understanding: Mapped[int] = mapped_column(Integer, nullable=False)
	data_structure_choice: Mapped[int] = mapped_column(Integer, nullable=False)
	time_complexity: Mapped[int] = mapped_column(Integer, nullable=False)
	coding_style: Mapped[int] = mapped_column(Integer, nullable=False)
	edge_cases: Mapped[int] = mapped_column(Integer, nullable=False)
	language_usage: Mapped[int] = mapped_column(Integer, nullable=False)
	communication: Mapped[int] = mapped_column(Integer, nullable=False)
	optimization: Mapped[int] = mapped_column(Integer, nullable=False)
	total_score: Mapped[int] = mapped_column(Integer, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

	__table_args__ = (
		UniqueConstraint("user_id", "session_id", name="uq_performance_target_user_session"),
	)

	def scores(self) -> Dict[str, int]:
		return {name: getattr(self, name) for name in METRIC_FIELDS}


class CodeSubmission(Base):
	__tablename__ = "code_submissions"

	id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
	session_id: Mapped[str] = mapped_column(
		ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, index=True
	)
	chat_message_seq: Mapped[int] = mapped_column(
		ForeignKey("chat_messages.seq", ondelete="CASCADE"), nullable=False
	)
	language: Mapped[str] = mapped_column(String(40), nullable=False, default="python")
	code: Mapped[str] = mapped_column(Text, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class Question(Base):
	__tablename__ = "questions"

	id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
	topic_id: Mapped[str] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
	title: Mapped[str] = mapped_column(String(300), nullable=False)
	description: Mapped[str] = mapped_column(Text, nullable=False)
	difficulty: Mapped[Difficulty] = mapped_column(
		SQLEnum(Difficulty, values_callable=lambda e: [m.value for m in e]),
		nullable=False,
		default=Difficulty.BEGINNER,
	)
	constraints: Mapped[List[str]] = mapped_column(JSON, default=list)
	examples: Mapped[List[dict]] = mapped_column(JSON, default=list)
	test_cases: Mapped[List[dict]] = mapped_column(JSON, default=list)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

	def visible_test_cases(self) -> List[dict]:
		return [case for case in (self.test_cases or []) if not case.get("is_hidden")]
