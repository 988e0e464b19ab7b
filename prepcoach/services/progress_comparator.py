from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Union

from prepcoach.models import PerformanceTarget
from prepcoach.services.evaluation_parser import DISPLAY_NAMES, METRIC_KEYS


READINESS_THRESHOLD = 6

ENCOURAGING_QUOTES = (
	"\"Success is the sum of small efforts, repeated day in and day out.\" - Robert Collier",
	"\"The expert in anything was once a beginner.\" - Helen Hayes",
	"\"It always seems impossible until it's done.\" - Nelson Mandela",
	"\"Quality is not an act, it is a habit.\" - Aristotle",
	"\"The secret of getting ahead is getting started.\" - Mark Twain",
)

TargetLike = Union[PerformanceTarget, Mapping[str, int]]


def _target_scores(target: TargetLike) -> Dict[str, int]:
	if isinstance(target, PerformanceTarget):
		return target.scores()
	return {key: target[key] for key in METRIC_KEYS if key in target}


@dataclass(frozen=True)
class Readiness:
	achieved: int
	total: int
	ready: bool
	lagging: List[str]


def metrics_needing_improvement(current: Mapping[str, int], target: TargetLike) -> List[str]:
	"""Display names of reported metrics that are still below target."""
	goals = _target_scores(target)
	lagging: List[str] = []
	for key in METRIC_KEYS:
		if key not in current or key not in goals:
			continue
		if current[key] < goals[key]:
			lagging.append(DISPLAY_NAMES[key])
	return lagging


def assess_readiness(current: Mapping[str, int], target: TargetLike) -> Readiness:
	goals = _target_scores(target)
	achieved = sum(
		1 for key in METRIC_KEYS
		if key in current and key in goals and current[key] >= goals[key]
	)
	return Readiness(
		achieved=achieved,
		total=len(METRIC_KEYS),
		ready=achieved >= READINESS_THRESHOLD,
		lagging=metrics_needing_improvement(current, target),
	)


def compose_feedback(
	current: Mapping[str, int],
	target: TargetLike,
	rng: Optional[random.Random] = None,
) -> str:
	readiness = assess_readiness(current, target)
	count = f"{readiness.achieved} out of {readiness.total}"
	if readiness.ready:
		quote = (rng or random).choice(ENCOURAGING_QUOTES)
		return (
			f"{quote}\n\n"
			f"Congratulations! You have met or exceeded your target score in {count} areas. "
			"You are interview ready. Keep your skills sharp with a few more problems."
		)
	message = f"You have reached your target score in {count} areas. Keep practicing!"
	if readiness.lagging:
		message += " Focus next on: " + ", ".join(readiness.lagging) + "."
	return message


def build_focus_section(
	current: Mapping[str, int],
	target: Optional[TargetLike],
	areas: Sequence[str] = (),
) -> str:
	"""Prompt fragment steering the next problem toward weak spots."""
	lines: List[str] = []
	if target is not None:
		lagging = metrics_needing_improvement(current, target)
		if lagging:
			lines.append("Metrics below the candidate's target: " + ", ".join(lagging) + ".")
	if areas:
		lines.append("Areas needing improvement from recent evaluations:")
		lines.extend(f"- {area}" for area in areas)
	if not lines:
		return ""
	return "\n\nFOCUS AREAS (generate problems that target these):\n" + "\n".join(lines)
