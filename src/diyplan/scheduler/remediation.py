"""Remediation suggestions for schedules with conflicts."""

import math
from datetime import datetime

from .config import SchedulingConfig
from .core import RemediationSuggestion, ScheduledTask

ADD_HELPER_FEASIBILITY = 0.8
NIGHT_WORK_FEASIBILITY = 0.6
EXTEND_DATE_FEASIBILITY = 0.9


class RemediationAdvisor:
    """Proposes ways to resolve the conflicts of a scheduling run.

    Suggestions are only made when at least one task is in conflict:
    - add_helper: always
    - allow_night_work: only if the site currently forbids night work
    - extend_date: only if the run had a deadline
    """

    def __init__(self, config: SchedulingConfig | None = None):
        self.config = config or SchedulingConfig()

    def suggest(
        self,
        scheduled_tasks: list[ScheduledTask],
        project_deadline: datetime | None = None,
    ) -> list[RemediationSuggestion]:
        conflicts = [st for st in scheduled_tasks if not st.is_confirmed]
        if not conflicts:
            return []

        count = len(conflicts)
        suggestions = [
            RemediationSuggestion(
                type="add_helper",
                description=f"Add a helper to complete {count} conflicting task{_plural(count)}",
                hours_saved=count * self.config.helper_hours_per_conflict,
                feasibility=ADD_HELPER_FEASIBILITY,
            )
        ]

        if not self.config.site.allow_night_work:
            penalty = round(self.config.night_work_penalty * 100)
            suggestions.append(
                RemediationSuggestion(
                    type="allow_night_work",
                    description=f"Allow evening work (with {penalty}% productivity penalty)",
                    hours_saved=count * self.config.night_work_hours_per_conflict,
                    feasibility=NIGHT_WORK_FEASIBILITY,
                )
            )

        if project_deadline is not None:
            overrun = _latest_overrun_hours(conflicts)
            if overrun > 0:
                days = math.ceil(overrun / 24)
                description = f"Extend target completion by {days} day{_plural(days)}"
            else:
                description = "Extend target completion by 1-2 weeks"
            suggestions.append(
                RemediationSuggestion(
                    type="extend_date",
                    description=description,
                    hours_saved=0.0,
                    feasibility=EXTEND_DATE_FEASIBILITY,
                )
            )

        return suggestions


def _latest_overrun_hours(conflicts: list[ScheduledTask]) -> float:
    """Largest gap between a best-effort end and the task's latest completion."""
    overruns = [
        (st.end_time - st.latest_completion).total_seconds() / 3600
        for st in conflicts
        if st.end_time is not None
    ]
    return max(overruns, default=0.0)


def _plural(count: int) -> str:
    return "" if count == 1 else "s"
