from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Sequence, Tuple


@dataclass(frozen=True)
class Metric:
	key: str
	display_name: str


METRICS: Tuple[Metric, ...] = (
	Metric("problem_understanding", "Problem Understanding"),
	Metric("data_structure_choice", "Data Structure Choice"),
	Metric("time_complexity", "Time Complexity"),
	Metric("coding_style", "Coding Style"),
	Metric("edge_cases", "Edge Cases"),
	Metric("language_usage", "Language Usage"),
	Metric("communication", "Communication"),
	Metric("optimization", "Optimization"),
)

METRIC_KEYS: Tuple[str, ...] = tuple(m.key for m in METRICS)
DISPLAY_NAMES: Dict[str, str] = {m.key: m.display_name for m in METRICS}

MAX_METRIC_SCORE = 10


def _score_pattern(display_name: str) -> Pattern[str]:
	return re.compile(re.escape(display_name) + r" \((\d+)/10\)")


SCORE_PATTERNS: Dict[str, Pattern[str]] = {m.key: _score_pattern(m.display_name) for m in METRICS}

IMPROVEMENT_HEADER = "Areas Needing Improvement"
SECTION_END_HEADERS: Tuple[str, ...] = ("Areas of Strength", "Correct Solution")

_SECTION_END = re.compile("|".join(re.escape(h) for h in SECTION_END_HEADERS))
# "-" and "*" need trailing whitespace so "**bold**" lines are not bullets
_BULLET = re.compile(r"^(?:[-*]\s+|•\s*)(.*)$")


@dataclass(frozen=True)
class ParsedScores:
	scores: Dict[str, int] = field(default_factory=dict)

	@property
	def found(self) -> bool:
		return bool(self.scores)

	@property
	def total(self) -> int:
		return sum(self.scores.values())


def parse_scores(evaluation_text: str) -> ParsedScores:
	"""Pull `<Metric Name> (n/10)` scores out of an evaluation.

	Metrics that are not mentioned are left out rather than scored zero.
	"""
	scores: Dict[str, int] = {}
	text = evaluation_text or ""
	for key, pattern in SCORE_PATTERNS.items():
		match = pattern.search(text)
		if not match:
			continue
		value = int(match.group(1))
		if 0 <= value <= MAX_METRIC_SCORE:
			scores[key] = value
	return ParsedScores(scores=scores)


def _improvement_section(text: str) -> Optional[str]:
	start = text.find(IMPROVEMENT_HEADER)
	if start == -1:
		return None
	body = text[start + len(IMPROVEMENT_HEADER):]
	end = _SECTION_END.search(body)
	return body[: end.start()] if end else body


def _bullets(section: str) -> List[str]:
	items: List[str] = []
	for line in section.splitlines():
		match = _BULLET.match(line.strip())
		if match:
			item = match.group(1).strip()
			if item:
				items.append(item)
	return items


def extract_areas_needing_improvement(messages: Sequence[str], limit: int = 3) -> List[str]:
	"""Collect improvement bullets from the `limit` most recent evaluations.

	`messages` is chronological; the newest evaluation is scanned first and
	duplicates keep their first-seen position.
	"""
	if limit <= 0:
		return []
	areas: List[str] = []
	seen = set()
	for text in reversed(list(messages)[-limit:]):
		section = _improvement_section(text or "")
		if section is None:
			continue
		for item in _bullets(section):
			if item not in seen:
				seen.add(item)
				areas.append(item)
	return areas
