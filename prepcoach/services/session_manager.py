from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from prepcoach.errors import NoQuestionError, SessionNotFoundError
from prepcoach.models import (
	ChatMessage,
	ChatSession,
	CodeSubmission,
	MessageSender,
	MessageType,
)


TITLE_LIMIT = 50
DEFAULT_SESSION_TITLE = "New Chat Session"


def session_title(initial_message: Optional[str]) -> str:
	text = (initial_message or "").strip()
	if not text:
		return DEFAULT_SESSION_TITLE
	title = text[:TITLE_LIMIT] + ("..." if len(text) > TITLE_LIMIT else "")
	return title.strip('"') or DEFAULT_SESSION_TITLE


def create_session(db: Session, user_id: str, initial_message: Optional[str] = None) -> ChatSession:
	chat_session = ChatSession(user_id=user_id, title=session_title(initial_message))
	db.add(chat_session)
	db.commit()
	db.refresh(chat_session)
	return chat_session


def get_required(db: Session, session_id: str, user_id: Optional[str] = None) -> ChatSession:
	"""Fetch a session, optionally checking ownership."""
	chat_session = db.get(ChatSession, session_id)
	if chat_session is None or (user_id is not None and chat_session.user_id != user_id):
		raise SessionNotFoundError(session_id)
	return chat_session


def list_sessions(db: Session, user_id: str) -> List[Dict]:
	"""Return lightweight session summaries, newest first."""
	sessions = db.scalars(
		select(ChatSession)
		.where(ChatSession.user_id == user_id)
		.order_by(ChatSession.updated_at.desc())
	).all()
	items: List[Dict] = []
	for s in sessions:
		last = latest_message(db, s.id)
		items.append({
			"id": s.id,
			"title": s.title,
			"created_at": s.created_at,
			"updated_at": s.updated_at,
			"last_message": last,
		})
	return items


def list_messages(db: Session, session_id: str) -> List[ChatMessage]:
	return list(db.scalars(
		select(ChatMessage)
		.where(ChatMessage.session_id == session_id)
		.order_by(ChatMessage.created_at, ChatMessage.seq)
	).all())


def history(db: Session, session_id: str) -> List[Dict[str, str]]:
	return [m.as_turn() for m in list_messages(db, session_id)]


def append_message(
	db: Session,
	chat_session: ChatSession,
	sender: MessageSender,
	content: str,
	message_type: MessageType = MessageType.GENERAL,
) -> ChatMessage:
	message = ChatMessage(
		session_id=chat_session.id,
		sender=sender,
		message_type=message_type,
		content=content,
	)
	db.add(message)
	chat_session.updated_at = datetime.now(timezone.utc)
	db.commit()
	db.refresh(message)
	return message


def latest_message(
	db: Session,
	session_id: str,
	message_type: Optional[MessageType] = None,
) -> Optional[ChatMessage]:
	stmt = select(ChatMessage).where(ChatMessage.session_id == session_id)
	if message_type is not None:
		stmt = stmt.where(ChatMessage.message_type == message_type)
	stmt = stmt.order_by(ChatMessage.created_at.desc(), ChatMessage.seq.desc()).limit(1)
	return db.scalar(stmt)


def current_problem(db: Session, session_id: str) -> Optional[ChatMessage]:
	return latest_message(db, session_id, MessageType.QUESTION)


def current_evaluation(db: Session, session_id: str) -> Optional[ChatMessage]:
	return latest_message(db, session_id, MessageType.EVALUATION)


def evaluation_texts(db: Session, session_id: str) -> List[str]:
	"""Evaluation message bodies, oldest first."""
	return [
		m.content for m in list_messages(db, session_id)
		if m.message_type is MessageType.EVALUATION
	]


def save_code_submission(db: Session, chat_session: ChatSession, code: str, language: str) -> CodeSubmission:
	problem = current_problem(db, chat_session.id)
	if problem is None:
		raise NoQuestionError(chat_session.id)
	submission = CodeSubmission(
		session_id=chat_session.id,
		chat_message_seq=problem.seq,
		language=language,
		code=code,
	)
	db.add(submission)
	db.commit()
	db.refresh(submission)
	return submission


def latest_code_submission(db: Session, session_id: str) -> Optional[CodeSubmission]:
	return db.scalar(
		select(CodeSubmission)
		.where(CodeSubmission.session_id == session_id)
		.order_by(CodeSubmission.created_at.desc())
		.limit(1)
	)
