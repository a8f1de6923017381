"""
Hierarchy views: filtering, expand/collapse visibility and statistics
over an already-built element list.
"""

from typing import Iterable, Optional

from actionplan.core.models import ElementType, PlanStatus
from actionplan.core.schemas import HierarchicalElement, HierarchyStats, StatusCounts


def filter_elements(
    elements: Iterable[HierarchicalElement],
    search: Optional[str] = None,
    status: Optional[PlanStatus] = None,
    criticality: Optional[str] = None,
) -> list[HierarchicalElement]:
    """
    Keep elements matching every given criterion.

    Args:
        elements: Sorted hierarchy
        search: Case-insensitive substring of name, objective or responsible
        status: Exact status
        criticality: Exact criticality (milestone criticality or task priority)

    Returns:
        Matching elements, order preserved
    """
    needle = search.strip().lower() if search else ""

    def matches(element: HierarchicalElement) -> bool:
        if needle:
            haystacks = (element.name, element.objective, element.responsible or "")
            if not any(needle in text.lower() for text in haystacks):
                return False
        if status is not None and element.status != status:
            return False
        if criticality is not None and element.criticality != criticality:
            return False
        return True

    return [element for element in elements if matches(element)]


def visible_elements(
    elements: Iterable[HierarchicalElement],
    expanded_phases: Iterable[str],
) -> list[HierarchicalElement]:
    """Phases are always shown; their children only when the phase is expanded."""
    expanded = set(expanded_phases)
    return [
        element
        for element in elements
        if element.level == 0 or (element.parent_phase is not None and element.parent_phase in expanded)
    ]


def count_statuses(statuses: Iterable[PlanStatus]) -> StatusCounts:
    counts = StatusCounts()
    for status in statuses:
        if status == PlanStatus.DONE:
            counts.done += 1
        elif status == PlanStatus.IN_PROGRESS:
            counts.in_progress += 1
        else:
            counts.todo += 1
    return counts


def hierarchy_stats(elements: Iterable[HierarchicalElement]) -> HierarchyStats:
    """Count elements per type; status counts cover tasks only."""
    elements = list(elements)
    tasks = [e for e in elements if e.type == ElementType.TASK]
    task_counts = count_statuses(task.status for task in tasks)

    return HierarchyStats(
        total=len(elements),
        phases=sum(1 for e in elements if e.type == ElementType.PHASE),
        milestones=sum(1 for e in elements if e.type == ElementType.MILESTONE),
        tasks=len(tasks),
        todo=task_counts.todo,
        in_progress=task_counts.in_progress,
        done=task_counts.done,
    )
