"""
Action Plan Timeline
====================

Completion-based progress tracking. There is no week-by-week schedule:
progress is the share of done tasks and milestones, and the "current"
phase follows the founder's choice or, failing that, recent activity.
"""

import math
import re
from datetime import datetime, timezone
from typing import Optional, Sequence

from actionplan.core.action_plan.views import count_statuses
from actionplan.core.models import Criticality, PlanStatus
from actionplan.core.schemas import (
    MilestoneRecord,
    PhaseRecord,
    TaskRecord,
    TimelineSummary,
)

# Lower rank = more urgent
CRITICALITY_RANK = {
    Criticality.CRITICAL: 1,
    Criticality.BLOCKING: 2,
    Criticality.IMPORTANT: 3,
    Criticality.HIGH: 4,
    Criticality.MODERATE: 5,
    Criticality.NORMAL: 6,
}
UNKNOWN_CRITICALITY_RANK = 10
UNKNOWN_WEEK = 9999

_WEEK_PATTERN = re.compile(r"S?(\d+)")


def completion_percentage(
    tasks: Sequence[TaskRecord],
    milestones: Sequence[MilestoneRecord],
) -> int:
    """Share of done tasks and milestones, rounded half up to a whole percent."""
    total = len(tasks) + len(milestones)
    if total == 0:
        return 0
    done = sum(1 for item in (*tasks, *milestones) if item.statut == PlanStatus.DONE)
    return math.floor(done * 100 / total + 0.5)


def infer_current_phase(
    phases: Sequence[PhaseRecord],
    tasks: Sequence[TaskRecord],
    manual_phase_id: Optional[str] = None,
) -> Optional[PhaseRecord]:
    """
    Pick the phase the project is currently in.

    Priority:
    1. Phase chosen manually (if it still exists)
    2. Phase whose tasks were updated most recently
    3. First phase not done, else the first phase
    """
    if not phases:
        return None

    if manual_phase_id:
        for phase in phases:
            if phase.phase_id == manual_phase_id:
                return phase

    latest_phase: Optional[PhaseRecord] = None
    latest_update = 0.0
    for phase in phases:
        for task in tasks:
            if task.phase_parent_id != phase.phase_id:
                continue
            updated = _timestamp(task.updated_at)
            if updated > latest_update:
                latest_phase, latest_update = phase, updated
    if latest_phase is not None:
        return latest_phase

    for phase in phases:
        if phase.statut != PlanStatus.DONE:
            return phase
    return phases[0]


def upcoming_milestones(
    milestones: Sequence[MilestoneRecord],
    limit: int = 3,
) -> list[MilestoneRecord]:
    """Open milestones, most critical first, then earliest target week."""
    pending = [m for m in milestones if m.statut != PlanStatus.DONE]
    pending.sort(key=lambda m: (_criticality_rank(m.criticite), week_number(m.semaine)))
    return pending[:limit]


def week_number(semaine: Optional[str]) -> int:
    """Parse "S6" / "6" / "Semaine 6" style labels; unknown sorts last."""
    if not semaine:
        return UNKNOWN_WEEK
    match = _WEEK_PATTERN.search(semaine)
    return int(match.group(1)) if match else UNKNOWN_WEEK


def is_phase_complete(
    tasks: Sequence[TaskRecord],
    milestones: Sequence[MilestoneRecord],
) -> bool:
    """A phase with no items is never complete."""
    items = [*tasks, *milestones]
    if not items:
        return False
    return all(item.statut == PlanStatus.DONE for item in items)


def suggest_next_phase(
    phases: Sequence[PhaseRecord],
    current: Optional[PhaseRecord],
) -> Optional[PhaseRecord]:
    """Next phase after `current` (in the given order) that is not done."""
    if current is None:
        return None
    index = next(
        (i for i, phase in enumerate(phases) if phase.phase_id == current.phase_id),
        None,
    )
    if index is None:
        return None
    for phase in phases[index + 1:]:
        if phase.statut != PlanStatus.DONE:
            return phase
    return None


def summarize_timeline(
    phases: Sequence[PhaseRecord],
    milestones: Sequence[MilestoneRecord],
    tasks: Sequence[TaskRecord],
    manual_phase_id: Optional[str] = None,
    upcoming_limit: int = 3,
) -> TimelineSummary:
    """
    Build the timeline summary for one project.

    A plan without phases or without tasks yields the empty summary.
    """
    if not phases or not tasks:
        return TimelineSummary()

    ordered_phases = sorted(phases, key=lambda p: p.ordre_execution)
    current = infer_current_phase(ordered_phases, tasks, manual_phase_id)

    if current is not None:
        phase_tasks = [t for t in tasks if t.phase_parent_id == current.phase_id]
        phase_milestones = [m for m in milestones if m.phase_parent_id == current.phase_id]
    else:
        phase_tasks, phase_milestones = [], []

    phase_complete = is_phase_complete(phase_tasks, phase_milestones)
    task_counts = count_statuses(t.statut for t in tasks)

    return TimelineSummary(
        completion_percentage=completion_percentage(tasks, milestones),
        current_phase=current,
        current_phase_id=current.phase_id if current else None,
        total_tasks=len(tasks),
        completed_tasks=task_counts.done,
        in_progress_tasks=task_counts.in_progress,
        todo_tasks=task_counts.todo,
        total_milestones=len(milestones),
        completed_milestones=sum(1 for m in milestones if m.statut == PlanStatus.DONE),
        tasks_in_current_phase=phase_tasks,
        milestones_in_current_phase=phase_milestones,
        upcoming_milestones=upcoming_milestones(milestones, upcoming_limit),
        phases=ordered_phases,
        is_phase_complete=phase_complete,
        suggested_next_phase=suggest_next_phase(ordered_phases, current) if phase_complete else None,
    )


def _criticality_rank(criticality: Optional[str]) -> int:
    if not criticality:
        return UNKNOWN_CRITICALITY_RANK
    try:
        return CRITICALITY_RANK[Criticality(criticality)]
    except ValueError:
        return UNKNOWN_CRITICALITY_RANK


def _timestamp(value: Optional[datetime]) -> float:
    if value is None:
        return 0.0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()
