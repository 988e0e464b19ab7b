from __future__ import annotations


class TopicNotFoundError(LookupError):
	"""Unknown category/topic id, or a main topic without subtopics."""


class SessionNotFoundError(LookupError):
	"""Chat session missing or not owned by the requesting user."""


class QuestionNotFoundError(LookupError):
	pass


class NoQuestionError(LookupError):
	"""The session has no `question` message to submit code against."""


class LLMUnavailableError(RuntimeError):
	"""No text-completion provider is configured."""


class CodeRunnerError(RuntimeError):
	pass
