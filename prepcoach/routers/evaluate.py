from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from prepcoach.database import get_db, run_in_thread
from prepcoach.errors import LLMUnavailableError, NoQuestionError
from prepcoach.schemas import CodeIn, EvaluationOut, PerformanceTargetOut, ProgressReportOut, ReadinessOut
from prepcoach.services.coaching import evaluate_submission, progress_report
from prepcoach.services.progress_comparator import Readiness
from prepcoach.routers.sessions import load_session
from prepcoach.utils.audit import auditor


router = APIRouter()


def _readiness(readiness: Optional[Readiness]) -> Optional[ReadinessOut]:
	if readiness is None:
		return None
	return ReadinessOut(achieved=readiness.achieved, total=readiness.total, ready=readiness.ready)


@router.post("/chat/{session_id}/evaluate", response_model=EvaluationOut)
async def evaluate(session_id: str, payload: CodeIn, db: Session = Depends(get_db)):
	chat_session = await run_in_thread(load_session, db, session_id, payload.user_id)
	if not payload.code.strip():
		raise HTTPException(status_code=400, detail="Empty code")

	try:
		outcome = await evaluate_submission(db, chat_session, payload.code, payload.language)
	except NoQuestionError:
		raise HTTPException(status_code=400, detail="No question message found in this session")
	except LLMUnavailableError as e:
		raise HTTPException(status_code=503, detail=str(e))
	except Exception as e:
		raise HTTPException(status_code=502, detail=f"LLM evaluation failed: {str(e)}")

	await auditor.log(
		"evaluation",
		session_id=chat_session.id,
		language=payload.language,
		scores=outcome.scores,
		ready=outcome.readiness.ready if outcome.readiness else None,
	)
	return EvaluationOut(
		session_id=chat_session.id,
		evaluation=outcome.message.content,
		scores=outcome.scores,
		scores_found=bool(outcome.scores),
		target=PerformanceTargetOut.model_validate(outcome.target) if outcome.target else None,
		metrics_needing_improvement=outcome.needs_improvement,
		readiness=_readiness(outcome.readiness),
		feedback=outcome.feedback,
		created_at=datetime.now(timezone.utc),
	)


@router.get("/chat/{session_id}/progress", response_model=ProgressReportOut)
def session_progress(session_id: str, user_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
	chat_session = load_session(db, session_id, user_id)
	report = progress_report(db, chat_session)
	return ProgressReportOut(
		session_id=chat_session.id,
		scores=report.scores,
		target=PerformanceTargetOut.model_validate(report.target) if report.target else None,
		metrics_needing_improvement=report.needs_improvement,
		areas_needing_improvement=report.areas_needing_improvement,
		readiness=_readiness(report.readiness),
		feedback=report.feedback,
	)
