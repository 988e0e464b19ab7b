import random

from prepcoach.services.job_levels import JobLevel, base_targets
from prepcoach.services.progress_comparator import (
    ENCOURAGING_QUOTES,
    assess_readiness,
    build_focus_section,
    compose_feedback,
    metrics_needing_improvement,
)


MID = base_targets(JobLevel.MID)


def scores_meeting(count):
    """Current scores that meet the mid-level target on exactly `count` metrics."""
    current = {}
    for i, (key, goal) in enumerate(MID.items()):
        current[key] = goal if i < count else goal - 1
    return current


def test_six_of_eight_is_ready_with_quote():
    feedback = compose_feedback(scores_meeting(6), MID, rng=random.Random(7))
    assert "6 out of 8" in feedback
    assert "interview ready" in feedback
    assert feedback.split("\n\n")[0] in ENCOURAGING_QUOTES


def test_quote_choice_follows_rng():
    first = compose_feedback(scores_meeting(8), MID, rng=random.Random(3))
    second = compose_feedback(scores_meeting(8), MID, rng=random.Random(3))
    assert first == second


def test_five_of_eight_is_not_ready():
    feedback = compose_feedback(scores_meeting(5), MID, rng=random.Random(0))
    assert "5 out of 8" in feedback
    assert "ready" not in feedback
    assert not any(quote in feedback for quote in ENCOURAGING_QUOTES)
    assert "Keep practicing!" in feedback


def test_unreported_metrics_are_not_counted():
    current = {"problem_understanding": 10, "optimization": 10}
    readiness = assess_readiness(current, MID)
    assert readiness.achieved == 2
    assert readiness.total == 8
    assert not readiness.ready
    assert readiness.lagging == []


def test_metric_below_target_needs_improvement():
    target = {"problem_understanding": 8}
    assert metrics_needing_improvement({"problem_understanding": 5}, target) == ["Problem Understanding"]
    assert metrics_needing_improvement({"problem_understanding": 9}, target) == []
    assert metrics_needing_improvement({}, target) == []


def test_lagging_metrics_use_display_names():
    current = dict(MID, edge_cases=1, communication=0)
    assert metrics_needing_improvement(current, MID) == ["Edge Cases", "Communication"]
    feedback = compose_feedback(current, MID, rng=random.Random(1))
    assert feedback.startswith('"')
    assert "6 out of 8" in feedback


def test_focus_section():
    current = dict(MID, optimization=2)
    section = build_focus_section(current, MID, ["Handle empty input"])
    assert section.startswith("\n\nFOCUS AREAS")
    assert "Optimization" in section
    assert "- Handle empty input" in section


def test_focus_section_empty_when_nothing_to_focus_on():
    assert build_focus_section({}, None, []) == ""
    assert build_focus_section(dict(MID), MID, []) == ""
