from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from prepcoach.database import get_db, run_in_thread
from prepcoach.errors import LLMUnavailableError, NoQuestionError, SessionNotFoundError
from prepcoach.models import ChatSession
from prepcoach.schemas import (
	ChatIn,
	ChatOut,
	CodeIn,
	CodeSubmissionOut,
	CreateSessionIn,
	CreateSessionOut,
	LatestCodeOut,
	MessageOut,
	PerformanceTargetOut,
	SessionList,
	SessionSummary,
)
from prepcoach.services import session_manager
from prepcoach.services.coaching import handle_chat_turn
from prepcoach.utils.audit import auditor


router = APIRouter()


def load_session(db: Session, session_id: str, user_id: str) -> ChatSession:
	try:
		return session_manager.get_required(db, session_id, user_id)
	except SessionNotFoundError:
		raise HTTPException(status_code=404, detail="Session not found")


@router.post("/sessions", response_model=CreateSessionOut)
def create_session(payload: CreateSessionIn, db: Session = Depends(get_db)):
	chat_session = session_manager.create_session(db, payload.user_id, payload.initial_message)
	return CreateSessionOut(session_id=chat_session.id, title=chat_session.title)


@router.get("/sessions", response_model=SessionList)
def list_sessions(user_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
	items = [
		SessionSummary(
			id=i["id"],
			title=i["title"],
			created_at=i["created_at"],
			updated_at=i["updated_at"],
			last_message=MessageOut.model_validate(i["last_message"]) if i["last_message"] else None,
		)
		for i in session_manager.list_sessions(db, user_id)
	]
	return SessionList(items=items)


@router.get("/chat/{session_id}/messages", response_model=list[MessageOut])
def list_messages(session_id: str, user_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
	chat_session = load_session(db, session_id, user_id)
	return [MessageOut.model_validate(m) for m in session_manager.list_messages(db, chat_session.id)]


@router.post("/chat/{session_id}/messages", response_model=ChatOut)
async def post_message(session_id: str, payload: ChatIn, db: Session = Depends(get_db)):
	chat_session = await run_in_thread(load_session, db, session_id, payload.user_id)
	if not payload.message.strip():
		raise HTTPException(status_code=400, detail="Empty message")

	try:
		result = await handle_chat_turn(db, chat_session, payload.message)
	except LLMUnavailableError as e:
		raise HTTPException(status_code=503, detail=str(e))
	except Exception as e:
		raise HTTPException(status_code=502, detail=f"Tutor reply failed: {str(e)}")

	target = result.target_init.target
	if result.target_init.created:
		await auditor.log(
			"target_initialized",
			session_id=chat_session.id,
			user_id=chat_session.user_id,
			job_title=target.target_job_title,
			total_score=target.total_score,
		)
	await auditor.log(
		"chat_turn",
		session_id=chat_session.id,
		message_type=result.reply.message_type.value,
	)
	return ChatOut(
		reply=MessageOut.model_validate(result.reply),
		target=PerformanceTargetOut.model_validate(target) if target else None,
		target_status=result.target_init.status.value,
	)


@router.get("/chat/{session_id}/code", response_model=LatestCodeOut)
def latest_code(session_id: str, user_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
	chat_session = load_session(db, session_id, user_id)
	submission = session_manager.latest_code_submission(db, chat_session.id)
	return LatestCodeOut(code_submission=CodeSubmissionOut.model_validate(submission) if submission else None)


@router.post("/chat/{session_id}/code", response_model=CodeSubmissionOut)
def save_code(session_id: str, payload: CodeIn, db: Session = Depends(get_db)):
	chat_session = load_session(db, session_id, payload.user_id)
	try:
		submission = session_manager.save_code_submission(db, chat_session, payload.code, payload.language)
	except NoQuestionError:
		raise HTTPException(status_code=400, detail="No question message found in this session")
	return CodeSubmissionOut.model_validate(submission)
