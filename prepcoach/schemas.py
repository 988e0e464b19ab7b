from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from datetime import datetime

from prepcoach.models import Difficulty, MessageType, Status


class ORMModel(BaseModel):
	model_config = ConfigDict(from_attributes=True)


class CreateSessionIn(BaseModel):
	user_id: str = Field(..., min_length=1)
	initial_message: Optional[str] = Field(default=None, description="First user message; used for the title")


class CreateSessionOut(BaseModel):
	session_id: str
	title: str


class MessageOut(ORMModel):
	role: str
	content: str
	message_type: MessageType
	created_at: datetime


class SessionSummary(BaseModel):
	id: str
	title: str
	created_at: datetime
	updated_at: datetime
	last_message: Optional[MessageOut] = None


class SessionList(BaseModel):
	items: List[SessionSummary]


class PerformanceTargetOut(ORMModel):
	id: str
	user_id: str
	session_id: str
	target_job_title: str
	problem_understanding: int = Field(..., ge=0, le=10)
	data_structure_choice: int = Field(..., ge=0, le=10)
	time_complexity: int = Field(..., ge=0, le=10)
	coding_style: int = Field(..., ge=0, le=10)
	edge_cases: int = Field(..., ge=0, le=10)
	language_usage: int = Field(..., ge=0, le=10)
	communication: int = Field(..., ge=0, le=10)
	optimization: int = Field(..., ge=0, le=10)
	total_score: int = Field(..., ge=0, le=80)


class ChatIn(BaseModel):
	user_id: str = Field(..., min_length=1)
	message: str = Field(..., min_length=1)


class ChatOut(BaseModel):
	reply: MessageOut
	target: Optional[PerformanceTargetOut] = None
	target_status: str


class CodeIn(BaseModel):
	user_id: str = Field(..., min_length=1)
	code: str = Field(..., min_length=1, description="Source code to evaluate")
	language: str = Field(default="python", description="Code language: python|javascript|java|cpp|go ...")


class CodeSubmissionOut(ORMModel):
	id: str
	session_id: str
	language: str
	code: str
	created_at: datetime


class LatestCodeOut(BaseModel):
	code_submission: Optional[CodeSubmissionOut] = None


class ReadinessOut(BaseModel):
	achieved: int
	total: int
	ready: bool


class EvaluationOut(BaseModel):
	session_id: str
	evaluation: str
	scores: Dict[str, int]
	scores_found: bool
	target: Optional[PerformanceTargetOut] = None
	metrics_needing_improvement: List[str] = []
	readiness: Optional[ReadinessOut] = None
	feedback: Optional[str] = None
	created_at: datetime


class ProgressReportOut(BaseModel):
	session_id: str
	scores: Dict[str, int]
	target: Optional[PerformanceTargetOut] = None
	metrics_needing_improvement: List[str]
	areas_needing_improvement: List[str]
	readiness: Optional[ReadinessOut] = None
	feedback: Optional[str] = None


class ProgressOut(BaseModel):
	status: Status
	progress_percentage: int = Field(..., ge=0, le=100)
	completed_at: Optional[datetime] = None
	current_subtopic_id: Optional[str] = None


class TopicNodeOut(BaseModel):
	id: str
	name: str
	category: str
	difficulty: Difficulty
	description: str = ""
	prerequisites: List[str] = []
	progress: ProgressOut
	subtopics: List["TopicNodeOut"] = []


class ExampleOut(BaseModel):
	input: str
	output: str
	explanation: str = ""


class TestCaseOut(BaseModel):
	input: str
	expected_output: str


class QuestionOut(BaseModel):
	id: str
	topic_id: str
	title: str
	description: str
	difficulty: Difficulty
	constraints: List[str]
	examples: List[ExampleOut]
	test_cases: List[TestCaseOut]


class QuestionSelectionOut(BaseModel):
	topic_id: str
	subtopic_id: str
	generated: bool
	question: QuestionOut


class HintOut(BaseModel):
	hint: str


class ExecuteIn(BaseModel):
	code: str = Field(..., min_length=1)
	language: str = Field(default="python")


class ExecuteOut(BaseModel):
	output: str
	error: Optional[str] = None


class CompleteSubtopicOut(BaseModel):
	topic_id: str
	status: Status
	progress_percentage: int
	current_subtopic_id: Optional[str] = None
	completed_at: Optional[datetime] = None
