from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from prepcoach.database import get_db, run_in_thread
from prepcoach.errors import LLMUnavailableError, QuestionNotFoundError, TopicNotFoundError
from prepcoach.models import Question
from prepcoach.schemas import ExampleOut, HintOut, QuestionOut, QuestionSelectionOut, TestCaseOut
from prepcoach.services.question_service import get_or_generate_question, question_hint
from prepcoach.services.topic_progress import select_target_subtopic
from prepcoach.utils.audit import auditor


router = APIRouter()


def question_out(question: Question) -> QuestionOut:
	return QuestionOut(
		id=question.id,
		topic_id=question.topic_id,
		title=question.title,
		description=question.description,
		difficulty=question.difficulty,
		constraints=list(question.constraints or []),
		examples=[ExampleOut(**e) for e in (question.examples or [])],
		test_cases=[
			TestCaseOut(input=c["input"], expected_output=c["expected_output"])
			for c in question.visible_test_cases()
		],
	)


@router.get("/questions/{category}", response_model=QuestionSelectionOut)
async def next_question(category: str, user_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
	try:
		selection = await run_in_thread(select_target_subtopic, db, user_id, category)
	except TopicNotFoundError as e:
		raise HTTPException(status_code=404, detail=str(e))

	if selection.all_completed:
		raise HTTPException(status_code=400, detail="All subtopics completed")

	try:
		question, generated = await get_or_generate_question(db, selection.subtopic_id)
	except LLMUnavailableError as e:
		raise HTTPException(status_code=503, detail=str(e))
	except Exception as e:
		raise HTTPException(status_code=502, detail=f"Failed to generate question: {str(e)}")

	await auditor.log(
		"subtopic_selected",
		user_id=user_id,
		topic_id=selection.topic_id,
		subtopic_id=selection.subtopic_id,
		question_id=question.id,
		generated=generated,
	)
	return QuestionSelectionOut(
		topic_id=selection.topic_id,
		subtopic_id=selection.subtopic_id,
		generated=generated,
		question=question_out(question),
	)


@router.post("/questions/{question_id}/hint", response_model=HintOut)
async def hint(question_id: str, db: Session = Depends(get_db)):
	try:
		text = await question_hint(db, question_id)
	except QuestionNotFoundError:
		raise HTTPException(status_code=404, detail="Question not found")
	except LLMUnavailableError as e:
		raise HTTPException(status_code=503, detail=str(e))
	return HintOut(hint=text)
