"""Tests for remediation suggestions."""

from datetime import datetime, timedelta

import pytest

from diyplan.scheduler import (
    ConflictReason,
    RemediationAdvisor,
    ScheduledTask,
    SchedulingConfig,
    SiteConstraints,
    TaskStatus,
)

LATEST = datetime(2025, 1, 6, 17)


def scheduled(task_id: str, *, conflict: bool, overrun_hours: float = 0.0) -> ScheduledTask:
    end = LATEST + timedelta(hours=overrun_hours) if conflict else LATEST
    return ScheduledTask(
        task_id=task_id,
        worker_id="owner",
        start_time=end - timedelta(hours=2),
        end_time=end,
        target_completion=LATEST,
        latest_completion=LATEST,
        status=TaskStatus.CONFLICT if conflict else TaskStatus.CONFIRMED,
        conflict_reason=ConflictReason.LATE if conflict else None,
    )


def test_no_conflicts_no_suggestions() -> None:
    assert RemediationAdvisor().suggest([scheduled("a", conflict=False)], LATEST) == []


def test_all_suggestions_with_deadline() -> None:
    tasks = [scheduled("a", conflict=True, overrun_hours=40), scheduled("b", conflict=True)]

    suggestions = RemediationAdvisor().suggest(tasks, LATEST)

    by_type = {s.type: s for s in suggestions}
    assert list(by_type) == ["add_helper", "allow_night_work", "extend_date"]
    assert by_type["add_helper"].hours_saved == pytest.approx(16)
    assert "2 conflicting tasks" in by_type["add_helper"].description
    assert by_type["allow_night_work"].hours_saved == pytest.approx(8)
    assert "15% productivity penalty" in by_type["allow_night_work"].description
    assert by_type["extend_date"].description == "Extend target completion by 2 days"
    assert all(0 <= s.feasibility <= 1 for s in suggestions)


def test_night_work_not_suggested_when_already_allowed() -> None:
    config = SchedulingConfig(site=SiteConstraints(allow_night_work=True))
    suggestions = RemediationAdvisor(config).suggest([scheduled("a", conflict=True)], LATEST)
    assert "allow_night_work" not in [s.type for s in suggestions]


def test_extend_date_needs_a_deadline() -> None:
    suggestions = RemediationAdvisor().suggest([scheduled("a", conflict=True)])
    assert [s.type for s in suggestions] == ["add_helper", "allow_night_work"]
    assert suggestions[0].description == "Add a helper to complete 1 conflicting task"


def test_extend_date_without_known_overrun() -> None:
    unplaced = ScheduledTask(
        task_id="a",
        worker_id=None,
        start_time=None,
        end_time=None,
        target_completion=LATEST,
        latest_completion=LATEST,
        status=TaskStatus.CONFLICT,
        conflict_reason=ConflictReason.NO_CAPACITY,
    )
    suggestions = RemediationAdvisor().suggest([unplaced], LATEST)
    assert suggestions[-1].description == "Extend target completion by 1-2 weeks"
