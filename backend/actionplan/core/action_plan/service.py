"""
Action Plan Service
===================

Loads one project's plan through an injected repository and shapes it
for the API: hierarchy, timeline, deliverables, and the status/phase
edits made from the plan page.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional
from uuid import UUID

import structlog

from actionplan.core.action_plan.deliverables import enrich_deliverables
from actionplan.core.action_plan.hierarchy import assemble_hierarchy
from actionplan.core.action_plan.repository import ActionPlanRepository
from actionplan.core.action_plan.timeline import summarize_timeline
from actionplan.core.action_plan.views import (
    count_statuses,
    filter_elements,
    hierarchy_stats,
    visible_elements,
)
from actionplan.core.config import Settings, get_settings
from actionplan.core.models import PlanStatus
from actionplan.core.schemas import (
    ActionPlanResponse,
    DeliverableListResponse,
    DeliverableView,
    HierarchicalElement,
    HierarchyResponse,
    MilestoneRecord,
    PhaseRecord,
    ProjectBriefRecord,
    ProjectClassificationRecord,
    TaskRecord,
    TimelineSummary,
)

logger = structlog.get_logger()


@dataclass
class ActionPlanData:
    """Everything fetched and derived for one project."""
    project_id: UUID
    brief: Optional[ProjectBriefRecord] = None
    classification: Optional[ProjectClassificationRecord] = None
    phases: list[PhaseRecord] = field(default_factory=list)
    milestones: list[MilestoneRecord] = field(default_factory=list)
    tasks: list[TaskRecord] = field(default_factory=list)
    deliverables: list[DeliverableView] = field(default_factory=list)
    hierarchy: list[HierarchicalElement] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_response(self, include_warnings: bool = True) -> ActionPlanResponse:
        return ActionPlanResponse(
            project_id=self.project_id,
            brief=self.brief,
            classification=self.classification,
            phases=self.phases,
            milestones=self.milestones,
            tasks=self.tasks,
            deliverables=self.deliverables,
            hierarchy=self.hierarchy,
            warnings=self.warnings if include_warnings else [],
        )


class ActionPlanService:
    """
    Read model of a project's action plan.

    The service keeps no state between calls: each method fetches fresh
    rows, so results always reflect the latest edits.
    """

    def __init__(
        self,
        repository: ActionPlanRepository,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.settings = settings or get_settings()

    async def load(self, project_id: UUID) -> ActionPlanData:
        """Fetch every table of the plan and build the hierarchy."""
        brief = await self.repository.get_brief(project_id)
        classification = await self.repository.get_classification(project_id)
        phases = await self.repository.list_phases(project_id)
        milestones = await self.repository.list_milestones(project_id)
        tasks = await self.repository.list_tasks(project_id)
        deliverables = await self.repository.list_deliverables(project_id)

        build = assemble_hierarchy(phases, milestones, tasks)

        logger.info(
            "action_plan_loaded",
            project_id=str(project_id),
            phases=len(phases),
            milestones=len(milestones),
            tasks=len(tasks),
            deliverables=len(deliverables),
            elements=len(build.elements),
        )

        return ActionPlanData(
            project_id=project_id,
            brief=brief,
            classification=classification,
            phases=phases,
            milestones=milestones,
            tasks=tasks,
            deliverables=enrich_deliverables(deliverables, phases, tasks),
            hierarchy=build.elements,
            warnings=build.warnings,
        )

    async def hierarchy(
        self,
        project_id: UUID,
        status: Optional[PlanStatus] = None,
        criticality: Optional[str] = None,
        search: Optional[str] = None,
        expanded_phases: Optional[Iterable[str]] = None,
    ) -> HierarchyResponse:
        """
        Filtered hierarchy for the plan table.

        Statistics are computed over the whole tree, before filtering.
        When `expanded_phases` is given, children of collapsed phases
        are hidden.
        """
        phases = await self.repository.list_phases(project_id)
        milestones = await self.repository.list_milestones(project_id)
        tasks = await self.repository.list_tasks(project_id)

        build = assemble_hierarchy(phases, milestones, tasks)
        items = filter_elements(build.elements, search=search, status=status, criticality=criticality)
        if expanded_phases is not None:
            items = visible_elements(items, expanded_phases)

        return HierarchyResponse(
            items=items,
            stats=hierarchy_stats(build.elements),
            warnings=build.warnings if self.settings.ACTION_PLAN_INCLUDE_WARNINGS else [],
        )

    async def timeline(self, project_id: UUID) -> TimelineSummary:
        """Progress summary, honouring the manually selected current phase."""
        brief = await self.repository.get_brief(project_id)
        phases = await self.repository.list_phases(project_id)
        milestones = await self.repository.list_milestones(project_id)
        tasks = await self.repository.list_tasks(project_id)

        return summarize_timeline(
            phases,
            milestones,
            tasks,
            manual_phase_id=brief.current_phase_id if brief else None,
            upcoming_limit=self.settings.ACTION_PLAN_UPCOMING_MILESTONES,
        )

    async def deliverables(self, project_id: UUID) -> DeliverableListResponse:
        deliverables = await self.repository.list_deliverables(project_id)
        phases = await self.repository.list_phases(project_id)
        tasks = await self.repository.list_tasks(project_id)

        items = enrich_deliverables(deliverables, phases, tasks)
        return DeliverableListResponse(
            items=items,
            counts=count_statuses(d.statut for d in items),
        )

    async def update_task_status(
        self,
        project_id: UUID,
        tache_id: str,
        status: PlanStatus,
    ) -> Optional[TaskRecord]:
        """Change a task's status; None if the task does not exist."""
        task = await self.repository.update_task_status(project_id, tache_id, status)
        if task is None:
            logger.warning(
                "action_plan_task_not_found",
                project_id=str(project_id),
                tache_id=tache_id,
            )
            return None

        logger.info(
            "action_plan_task_status_updated",
            project_id=str(project_id),
            tache_id=tache_id,
            status=status.value,
        )
        return task

    async def set_current_phase(self, project_id: UUID, phase_id: str) -> bool:
        """
        Mark a phase as current.

        Returns:
            False if the phase is not part of the plan or the project has no brief
        """
        phases = await self.repository.list_phases(project_id)
        if not any(phase.phase_id == phase_id for phase in phases):
            logger.warning(
                "action_plan_phase_not_found",
                project_id=str(project_id),
                phase_id=phase_id,
            )
            return False

        stored = await self.repository.set_current_phase(project_id, phase_id)
        if stored:
            logger.info(
                "action_plan_current_phase_set",
                project_id=str(project_id),
                phase_id=phase_id,
            )
        return stored
