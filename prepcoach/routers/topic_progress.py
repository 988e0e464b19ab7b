from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from prepcoach.database import get_db
from prepcoach.errors import TopicNotFoundError
from prepcoach.schemas import CompleteSubtopicOut, TopicNodeOut
from prepcoach.services.topic_progress import complete_subtopic, get_topic_hierarchy
from prepcoach.utils.audit import auditor


router = APIRouter()


@router.get("/users/{user_id}/topic-progress", response_model=list[TopicNodeOut])
def topic_progress(user_id: str, db: Session = Depends(get_db)):
	return get_topic_hierarchy(db, user_id)


@router.post("/users/{user_id}/topic-progress/{subtopic_id}/complete", response_model=CompleteSubtopicOut)
def mark_complete(user_id: str, subtopic_id: str, db: Session = Depends(get_db)):
	try:
		record = complete_subtopic(db, user_id, subtopic_id)
	except TopicNotFoundError as e:
		raise HTTPException(status_code=404, detail=str(e))

	auditor.log_from_thread(
		"subtopic_completed",
		user_id=user_id,
		topic_id=record.topic_id,
		subtopic_id=subtopic_id,
		progress_percentage=record.progress_percentage,
	)
	return CompleteSubtopicOut(
		topic_id=record.topic_id,
		status=record.status,
		progress_percentage=record.progress_percentage,
		current_subtopic_id=record.current_subtopic_id,
		completed_at=record.completed_at,
	)
