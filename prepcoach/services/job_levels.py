from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional


class JobLevel(str, enum.Enum):
	JUNIOR = "Junior"
	MID = "Mid"
	SENIOR = "Senior"
	LEAD = "Lead"


# Seniority order, lowest first.
LEVEL_ORDER = (JobLevel.JUNIOR, JobLevel.MID, JobLevel.SENIOR, JobLevel.LEAD)

DEFAULT_LEVEL = JobLevel.MID


def _frozen(table: Mapping) -> Mapping:
	return MappingProxyType(dict(table))


DEFAULT_TITLE_LEVELS: Mapping[str, JobLevel] = _frozen({
	"junior software engineer": JobLevel.JUNIOR,
	"software engineer": JobLevel.MID,
	"senior software engineer": JobLevel.SENIOR,
	"lead software engineer": JobLevel.LEAD,
	"tech lead": JobLevel.LEAD,
	"junior developer": JobLevel.JUNIOR,
	"developer": JobLevel.MID,
	"senior developer": JobLevel.SENIOR,
	"lead developer": JobLevel.LEAD,
})

DEFAULT_BASE_TARGETS: Mapping[JobLevel, Mapping[str, int]] = _frozen({
	JobLevel.JUNIOR: _frozen({
		"problem_understanding": 6,
		"data_structure_choice": 6,
		"time_complexity": 5,
		"coding_style": 7,
		"edge_cases": 6,
		"language_usage": 7,
		"communication": 7,
		"optimization": 5,
	}),
	JobLevel.MID: _frozen({
		"problem_understanding": 7,
		"data_structure_choice": 7,
		"time_complexity": 7,
		"coding_style": 8,
		"edge_cases": 7,
		"language_usage": 8,
		"communication": 8,
		"optimization": 7,
	}),
	JobLevel.SENIOR: _frozen({
		"problem_understanding": 8,
		"data_structure_choice": 8,
		"time_complexity": 8,
		"coding_style": 9,
		"edge_cases": 8,
		"language_usage": 9,
		"communication": 9,
		"optimization": 8,
	}),
	JobLevel.LEAD: _frozen({
		"problem_understanding": 9,
		"data_structure_choice": 9,
		"time_complexity": 9,
		"coding_style": 9,
		"edge_cases": 9,
		"language_usage": 9,
		"communication": 9,
		"optimization": 9,
	}),
})


def normalize_title(title: str) -> str:
	return " ".join((title or "").lower().split())


class JobLevelResolver:
	"""Maps job titles to seniority levels and levels to target scores.

	Lookup is an exact match on the normalized title; anything unknown
	resolves to `default_level`.
	"""

	def __init__(
		self,
		title_levels: Optional[Mapping[str, JobLevel]] = None,
		base_targets: Optional[Mapping[JobLevel, Mapping[str, int]]] = None,
		default_level: JobLevel = DEFAULT_LEVEL,
	) -> None:
		levels = DEFAULT_TITLE_LEVELS if title_levels is None else title_levels
		self._title_levels = _frozen({normalize_title(k): v for k, v in levels.items()})
		self._base_targets = DEFAULT_BASE_TARGETS if base_targets is None else _frozen(base_targets)
		self._default_level = default_level

	@property
	def title_levels(self) -> Mapping[str, JobLevel]:
		return self._title_levels

	def resolve_level(self, title: str) -> JobLevel:
		return self._title_levels.get(normalize_title(title), self._default_level)

	def base_targets(self, level: JobLevel) -> Dict[str, int]:
		return dict(self._base_targets[level])

	def targets_for_title(self, title: str) -> Dict[str, int]:
		return self.base_targets(self.resolve_level(title))


job_level_resolver = JobLevelResolver()


def resolve_level(title: str) -> JobLevel:
	return job_level_resolver.resolve_level(title)


def base_targets(level: JobLevel) -> Dict[str, int]:
	return job_level_resolver.base_targets(level)
