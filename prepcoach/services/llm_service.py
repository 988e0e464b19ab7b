from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

import anyio
from groq import Groq

from prepcoach.config import settings
from prepcoach.errors import LLMUnavailableError
from prepcoach.services.evaluation_parser import METRICS
from prepcoach.services.title_extractor import ONBOARDING_QUESTION


TUTOR_PROMPT = (
	"You are an AI interview coach and problem generator, specialized in creating high-quality programming "
	"interview questions and helping software engineers prepare for technical interviews.\n\n"
	"For any question that is not related to interview preparation, respond with: "
	"\"Sorry, my capabilities are only for helping in interview preparation.\"\n\n"

	"PROBLEM GENERATION WORKFLOW:\n\n"
	"1. For new users, gather the following if not already provided:\n"
	"   - Target job title (Software Engineer, Senior Software Engineer, etc.) - THIS IS REQUIRED\n"
	"   - Target companies, preferred programming languages, preparation timeframe, current skill level\n\n"
	"If the user hasn't provided their target job title, ask for it first:\n"
	f"\"To provide you with the most relevant interview questions, could you please let me know {ONBOARDING_QUESTION}? "
	"(e.g., Software Engineer, Senior Software Engineer, Lead Software Engineer, etc.)\"\n\n"
	"Once you know the title, confirm it in one sentence such as \"Great, let's practice for a <title> role.\"\n\n"

	"2. Generate problems with this structure:\n"
	"   [TWO LINES EXPLAINING WHY THIS PROBLEM WAS CHOSEN AND HOW IT HELPS THE USER IMPROVE]\n\n"
	"   Problem Title: <a clear, concise title>\n\n"
	"   Description: <clear explanation of the problem>\n\n"
	"   Example:\n   Input: ...\n   Output: ...\n   Explanation: ...\n\n"
	"   Constraints:\n   - Time and space complexity requirements\n   - Input size limits and value ranges\n\n"
	"   Test Cases: exactly 3, increasing in complexity, each with Input and Expected Output.\n\n"

	"3. Focus areas: if areas needing improvement are provided, generate problems that specifically target them "
	"(optimization -> problems requiring efficient solutions; edge cases -> tricky boundaries; "
	"communication -> require a written explanation of the approach).\n\n"
	"Do not provide solutions or implementation hints unless specifically requested."
)


def _metric_lines() -> str:
	return "\n".join(f"{i}. {m.display_name} (<score>/10): <one-line justification>" for i, m in enumerate(METRICS, 1))


EVALUATION_PROMPT = (
	"You are a senior coding interview evaluator. Evaluate the candidate's solution to the given problem "
	"against the target job title.\n\n"
	"Output strictly in this format (exact headings, exact metric names, integer scores 0-10):\n\n"
	"## Score Breakdown\n"
	+ _metric_lines() +
	"\n\nTotal Score: <sum>/80\n"
	"Confidence for target role: <0-100>%\n\n"
	"## Areas of Strength\n- <bullet>\n- <bullet>\n\n"
	"## Areas Needing Improvement\n- <bullet>\n- <bullet>\n\n"
	"## Correct Solution\n<a correct, idiomatic reference solution in the candidate's language>\n\n"
	"Be concrete. Do not use placeholders."
)


def question_prompt(topic: str, difficulty: str) -> str:
	return (
		f"Generate a coding problem related to {topic} with {difficulty} difficulty level.\n"
		"Respond with JSON only, in this format:\n"
		"{\n"
		"  \"title\": \"Problem title\",\n"
		"  \"description\": \"Detailed problem description\",\n"
		"  \"examples\": [{\"input\": \"...\", \"output\": \"...\", \"explanation\": \"...\"}],\n"
		"  \"constraints\": [\"...\"],\n"
		"  \"testCases\": [{\"input\": \"...\", \"output\": \"...\", \"isHidden\": false}]\n"
		"}"
	)


def hint_prompt(question: str) -> str:
	return (
		"Generate a helpful hint for the following coding problem without giving away the complete solution:\n\n"
		f"Problem: {question}\n\n"
		"Provide a hint that guides the user towards the solution while encouraging them to think through the problem."
	)


_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


def parse_json_object(text: str) -> Dict[str, Any]:
	"""Decode the first JSON object in a completion, tolerating code fences."""
	body = _FENCE.sub("", (text or "").strip())
	start = body.find("{")
	end = body.rfind("}")
	if start == -1 or end <= start:
		raise ValueError("completion did not contain a JSON object")
	data = json.loads(body[start:end + 1])
	if not isinstance(data, dict):
		raise ValueError("completion JSON is not an object")
	return data


class LLMService:
	def __init__(self) -> None:
		self._client: Groq | None = None

	def _ensure_client(self):
		provider = (settings.llm_provider or "groq").lower()
		if provider != "groq":
			return None
		api_key = settings.groq_api_key
		if not api_key:
			self._client = None
			return None
		if self._client is None:
			self._client = Groq(api_key=api_key)
		return self._client

	@property
	def enabled(self) -> bool:
		return (settings.llm_provider or "groq").lower() == "groq" and bool(settings.groq_api_key)

	async def complete(
		self,
		system_prompt: str,
		messages: Sequence[Mapping[str, str]],
		*,
		temperature: float,
		max_tokens: int,
	) -> str:
		"""Single text completion; the only place the provider is called."""
		client = self._ensure_client()
		if client is None:
			raise LLMUnavailableError("No LLM provider configured")

		payload: List[Dict[str, str]] = [{"role": "system", "content": system_prompt}]
		payload.extend({"role": m["role"], "content": m["content"]} for m in messages)

		def _call() -> str:
			resp = client.chat.completions.create(
				model=settings.groq_model,
				messages=payload,
				temperature=temperature,
				max_tokens=max_tokens,
			)
			return (resp.choices[0].message.content or "").strip()

		return await anyio.to_thread.run_sync(_call)

	async def tutor_reply(
		self,
		history: Sequence[Mapping[str, str]],
		message: str,
		*,
		target_job_title: Optional[str] = None,
		focus_section: str = "",
	) -> str:
		if not self.enabled:
			# Offline mode keeps the onboarding flow usable
			if not target_job_title:
				return (
					"To provide you with the most relevant interview questions, could you please let me know "
					f"{ONBOARDING_QUESTION}? (e.g., Software Engineer, Senior Software Engineer, Lead Software Engineer, etc.)"
				)
			return f"Offline mode. Configure an LLM provider to practice for a {target_job_title} role."

		prompt = TUTOR_PROMPT
		if target_job_title:
			prompt += f"\n\nThe candidate's target job title is: {target_job_title}."
		prompt += focus_section

		turns = list(history)[-settings.history_turns:]
		turns.append({"role": "user", "content": message})
		return await self.complete(
			prompt,
			turns,
			temperature=settings.chat_temperature,
			max_tokens=settings.chat_max_tokens,
		)

	async def evaluate_code(self, problem: str, code: str, language: str, target_job_title: str) -> str:
		"""Evaluation text with per-metric `<Metric> (n/10)` scores and bullet sections."""
		if not self.enabled:
			return (
				"Offline mode. Cannot evaluate without an LLM provider.\n\n"
				"## Areas Needing Improvement\n- Configure an LLM provider to receive an evaluation"
			)
		content = (
			f"Problem:\n{problem}\n\n"
			f"Candidate's Code ({language}):\n```{language}\n{code}\n```\n\n"
			f"Target Job Title: {target_job_title}\n\n"
			"Please evaluate the solution based on the given criteria."
		)
		return await self.complete(
			EVALUATION_PROMPT,
			[{"role": "user", "content": content}],
			temperature=settings.evaluation_temperature,
			max_tokens=settings.evaluation_max_tokens,
		)

	async def generate_question(self, topic: str, difficulty: str) -> Dict[str, Any]:
		text = await self.complete(
			"You write programming interview problems as strict JSON.",
			[{"role": "user", "content": question_prompt(topic, difficulty)}],
			temperature=settings.question_temperature,
			max_tokens=settings.question_max_tokens,
		)
		return parse_json_object(text)

	async def generate_hint(self, question: str) -> str:
		return await self.complete(
			"You are a supportive coding interview coach.",
			[{"role": "user", "content": hint_prompt(question)}],
			temperature=settings.question_temperature,
			max_tokens=settings.chat_max_tokens,
		)


llm_service = LLMService()
