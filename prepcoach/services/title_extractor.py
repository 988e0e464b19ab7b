from __future__ import annotations

import re
from typing import Mapping, Optional, Pattern, Sequence, Tuple


SENIORITY = r"junior|senior|lead|principal"
ROLE_NOUNS = r"software\s+engineer(?:ing)?|developer|engineer|programmer"

_TITLE = rf"(?P<title>(?:(?:{SENIORITY})\s+)?(?:{ROLE_NOUNS}))\b"

# Ordered from most to least specific; the first match wins.
DEFAULT_TITLE_PATTERNS: Tuple[Pattern[str], ...] = (
	re.compile(rf"\bhelp\b.*?\b{_TITLE}"),
	re.compile(rf"\b(?:for|as|position|role|job|title)\b.*?\b{_TITLE}"),
	re.compile(rf"\b{_TITLE}"),
	re.compile(rf"\b(?P<title>{ROLE_NOUNS})\b"),
)

# Assistant confirmations such as "...practice for a senior software engineer role".
DEFAULT_HISTORY_PATTERN: Pattern[str] = re.compile(
	r"\bfor\s+(?:a|an|the)\s+(?P<title>[a-z][a-z\s-]*?\b(?:engineer|developer))\b[^.\n]*?\brole\b"
)

# The tutor's onboarding prompt; messages quoting it are not confirmations.
ONBOARDING_QUESTION = "what job title you're targeting"

CONNECTOR_WORDS = frozenset({"a", "an", "the", "for", "as", "to", "be", "become", "my"})

DEFAULT_TITLE = "Software Engineer"


def clean_title(raw: str) -> str:
	"""Normalize a matched role phrase into a display title."""
	words = raw.lower().split()
	while words and words[0] in CONNECTOR_WORDS:
		words.pop(0)
	while words and words[-1] == "role":
		words.pop()
	words = ["engineer" if w == "engineering" else w for w in words]
	title = " ".join(w.capitalize() for w in words)
	return re.sub(r"software engineer", "Software Engineer", title, flags=re.IGNORECASE)


class TitleExtractor:
	"""Best-effort job title extraction from free text.

	Patterns are evaluated against lowercased text and must expose a
	`title` group.
	"""

	def __init__(
		self,
		patterns: Optional[Sequence[Pattern[str]]] = None,
		history_pattern: Optional[Pattern[str]] = None,
		onboarding_question: str = ONBOARDING_QUESTION,
	) -> None:
		self.patterns: Tuple[Pattern[str], ...] = tuple(patterns or DEFAULT_TITLE_PATTERNS)
		self.history_pattern = history_pattern or DEFAULT_HISTORY_PATTERN
		self.onboarding_question = onboarding_question.lower()

	def extract_title(self, text: str) -> str:
		normalized = (text or "").lower().strip()
		if not normalized or "," in normalized:
			# Comma-separated questionnaire answers are not job titles
			return ""
		for pattern in self.patterns:
			match = pattern.search(normalized)
			if match:
				return clean_title(match.group("title"))
		return ""

	def extract_title_from_history(self, history: Sequence[Mapping[str, str]]) -> str:
		for turn in reversed(history):
			if turn.get("role") != "assistant":
				continue
			content = (turn.get("content") or "").lower()
			if "software engineer" not in content or self.onboarding_question in content:
				continue
			match = self.history_pattern.search(content)
			if match:
				title = clean_title(match.group("title"))
				if title:
					return title
			# Only the most recent qualifying assistant message is consulted
			break

		for turn in reversed(history):
			if turn.get("role") != "user":
				continue
			title = self.extract_title(turn.get("content") or "")
			if title:
				return title
		return ""


title_extractor = TitleExtractor()


def extract_title(text: str) -> str:
	return title_extractor.extract_title(text)


def extract_title_from_history(history: Sequence[Mapping[str, str]]) -> str:
	return title_extractor.extract_title_from_history(history)
