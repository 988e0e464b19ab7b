import pytest

from prepcoach.services.job_levels import (
    LEVEL_ORDER,
    JobLevel,
    JobLevelResolver,
    base_targets,
    resolve_level,
)


@pytest.mark.parametrize(
    "title,level",
    [
        ("Senior Software Engineer", JobLevel.SENIOR),
        ("  junior   DEVELOPER ", JobLevel.JUNIOR),
        ("Tech Lead", JobLevel.LEAD),
        ("software engineer", JobLevel.MID),
        ("lead developer", JobLevel.LEAD),
    ],
)
def test_resolve_level_known_titles(title, level):
    assert resolve_level(title) is level


@pytest.mark.parametrize("title", ["", "Staff Wizard", "senior software engineer ii", "senior-developer"])
def test_unknown_titles_default_to_mid(title):
    assert resolve_level(title) is JobLevel.MID


def test_base_targets_monotonic_across_levels():
    for lower, higher in zip(LEVEL_ORDER, LEVEL_ORDER[1:]):
        low, high = base_targets(lower), base_targets(higher)
        assert low.keys() == high.keys()
        for metric in low:
            assert low[metric] <= high[metric], (metric, lower, higher)


def test_base_targets_have_eight_metrics_in_range():
    for level in LEVEL_ORDER:
        scores = base_targets(level)
        assert len(scores) == 8
        assert all(0 <= v <= 10 for v in scores.values())
    assert all(v == 9 for v in base_targets(JobLevel.LEAD).values())


def test_base_targets_returns_a_copy():
    scores = base_targets(JobLevel.JUNIOR)
    scores["optimization"] = 0
    assert base_targets(JobLevel.JUNIOR)["optimization"] == 5


def test_injected_tables_are_read_only():
    resolver = JobLevelResolver(title_levels={"Staff Engineer": JobLevel.LEAD})
    assert resolver.resolve_level("staff engineer") is JobLevel.LEAD
    assert resolver.resolve_level("senior developer") is JobLevel.MID
    with pytest.raises(TypeError):
        resolver.title_levels["intern"] = JobLevel.JUNIOR
