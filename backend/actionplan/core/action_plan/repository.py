"""
Action Plan Repositories
========================

Storage access for the action plan tables. Callers receive validated
records, never ORM rows, so nothing downstream depends on the storage
shape.

- SqlActionPlanRepository: async SQLAlchemy session (request-scoped)
- InMemoryActionPlanRepository: plain dict store, owned by whoever builds it
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from actionplan.core.models import (
    ActionPlanDeliverable,
    ActionPlanMilestone,
    ActionPlanPhase,
    ActionPlanTask,
    PlanStatus,
    ProjectBrief,
    ProjectClassification,
)
from actionplan.core.schemas import (
    DeliverableRecord,
    MilestoneRecord,
    PhaseRecord,
    ProjectBriefRecord,
    ProjectClassificationRecord,
    TaskRecord,
)

logger = structlog.get_logger()


# ==========================================================================
# Repository Interface
# ==========================================================================

class ActionPlanRepository(ABC):
    """Read access to one project's plan, plus the two edits the UI makes."""

    @abstractmethod
    async def get_brief(self, project_id: UUID) -> Optional[ProjectBriefRecord]:
        """Questionnaire answers, or None if the project has none."""
        pass

    @abstractmethod
    async def get_classification(self, project_id: UUID) -> Optional[ProjectClassificationRecord]:
        pass

    @abstractmethod
    async def list_phases(self, project_id: UUID) -> list[PhaseRecord]:
        pass

    @abstractmethod
    async def list_milestones(self, project_id: UUID) -> list[MilestoneRecord]:
        pass

    @abstractmethod
    async def list_tasks(self, project_id: UUID) -> list[TaskRecord]:
        pass

    @abstractmethod
    async def list_deliverables(self, project_id: UUID) -> list[DeliverableRecord]:
        pass

    @abstractmethod
    async def update_task_status(
        self,
        project_id: UUID,
        tache_id: str,
        status: PlanStatus,
    ) -> Optional[TaskRecord]:
        """
        Set a task's status.

        Returns:
            The updated task, or None if no such task exists
        """
        pass

    @abstractmethod
    async def set_current_phase(self, project_id: UUID, phase_id: str) -> bool:
        """
        Store the manually selected current phase on the project brief.

        Returns:
            False if the project has no brief to store it on
        """
        pass


# ==========================================================================
# SQLAlchemy Implementation
# ==========================================================================

class SqlActionPlanRepository(ActionPlanRepository):
    """Repository backed by the async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_brief(self, project_id: UUID) -> Optional[ProjectBriefRecord]:
        row = await self._get_brief_row(project_id)
        return ProjectBriefRecord.model_validate(row) if row else None

    async def get_classification(self, project_id: UUID) -> Optional[ProjectClassificationRecord]:
        result = await self.db.execute(
            select(ProjectClassification)
            .where(ProjectClassification.project_id == project_id)
            .order_by(ProjectClassification.created_at.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return ProjectClassificationRecord.model_validate(row) if row else None

    async def list_phases(self, project_id: UUID) -> list[PhaseRecord]:
        result = await self.db.execute(
            select(ActionPlanPhase)
            .where(ActionPlanPhase.project_id == project_id)
            .order_by(ActionPlanPhase.ordre_execution, ActionPlanPhase.phase_index)
        )
        return [PhaseRecord.model_validate(row) for row in result.scalars().all()]

    async def list_milestones(self, project_id: UUID) -> list[MilestoneRecord]:
        result = await self.db.execute(
            select(ActionPlanMilestone)
            .where(ActionPlanMilestone.project_id == project_id)
            .order_by(ActionPlanMilestone.jalon_index)
        )
        return [MilestoneRecord.model_validate(row) for row in result.scalars().all()]

    async def list_tasks(self, project_id: UUID) -> list[TaskRecord]:
        result = await self.db.execute(
            select(ActionPlanTask)
            .where(ActionPlanTask.project_id == project_id)
            .order_by(ActionPlanTask.ordre_execution, ActionPlanTask.tache_index)
        )
        return [TaskRecord.model_validate(row) for row in result.scalars().all()]

    async def list_deliverables(self, project_id: UUID) -> list[DeliverableRecord]:
        result = await self.db.execute(
            select(ActionPlanDeliverable)
            .where(ActionPlanDeliverable.project_id == project_id)
            .order_by(ActionPlanDeliverable.livrable_id)
        )
        return [DeliverableRecord.model_validate(row) for row in result.scalars().all()]

    async def update_task_status(
        self,
        project_id: UUID,
        tache_id: str,
        status: PlanStatus,
    ) -> Optional[TaskRecord]:
        result = await self.db.execute(
            select(ActionPlanTask).where(
                ActionPlanTask.project_id == project_id,
                ActionPlanTask.tache_id == tache_id,
            )
        )
        task = result.scalars().first()
        if task is None:
            return None

        task.statut = status
        task.updated_at = datetime.now(timezone.utc)

        await self.db.commit()
        await self.db.refresh(task)

        return TaskRecord.model_validate(task)

    async def set_current_phase(self, project_id: UUID, phase_id: str) -> bool:
        brief = await self._get_brief_row(project_id)
        if brief is None:
            return False

        brief.current_phase_id = phase_id
        brief.updated_at = datetime.now(timezone.utc)

        await self.db.commit()
        return True

    async def _get_brief_row(self, project_id: UUID) -> Optional[ProjectBrief]:
        result = await self.db.execute(
            select(ProjectBrief)
            .where(ProjectBrief.project_id == project_id)
            .order_by(ProjectBrief.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


# ==========================================================================
# In-Memory Implementation
# ==========================================================================

class InMemoryActionPlanRepository(ActionPlanRepository):
    """
    Repository holding records in plain dictionaries.

    Each instance owns its own store; nothing is shared between instances.
    Used for previews of freshly generated plans and in tests.
    """

    def __init__(self) -> None:
        self.briefs: dict[UUID, ProjectBriefRecord] = {}
        self.classifications: dict[UUID, ProjectClassificationRecord] = {}
        self.phases: dict[UUID, list[PhaseRecord]] = defaultdict(list)
        self.milestones: dict[UUID, list[MilestoneRecord]] = defaultdict(list)
        self.tasks: dict[UUID, list[TaskRecord]] = defaultdict(list)
        self.deliverables: dict[UUID, list[DeliverableRecord]] = defaultdict(list)

    def add_plan(
        self,
        project_id: UUID,
        phases: Optional[list[PhaseRecord]] = None,
        milestones: Optional[list[MilestoneRecord]] = None,
        tasks: Optional[list[TaskRecord]] = None,
        deliverables: Optional[list[DeliverableRecord]] = None,
        brief: Optional[ProjectBriefRecord] = None,
        classification: Optional[ProjectClassificationRecord] = None,
    ) -> None:
        """Append records to a project's plan."""
        self.phases[project_id].extend(phases or [])
        self.milestones[project_id].extend(milestones or [])
        self.tasks[project_id].extend(tasks or [])
        self.deliverables[project_id].extend(deliverables or [])
        if brief is not None:
            self.briefs[project_id] = brief
        if classification is not None:
            self.classifications[project_id] = classification

    async def get_brief(self, project_id: UUID) -> Optional[ProjectBriefRecord]:
        return self.briefs.get(project_id)

    async def get_classification(self, project_id: UUID) -> Optional[ProjectClassificationRecord]:
        return self.classifications.get(project_id)

    async def list_phases(self, project_id: UUID) -> list[PhaseRecord]:
        return list(self.phases.get(project_id, []))

    async def list_milestones(self, project_id: UUID) -> list[MilestoneRecord]:
        return list(self.milestones.get(project_id, []))

    async def list_tasks(self, project_id: UUID) -> list[TaskRecord]:
        return list(self.tasks.get(project_id, []))

    async def list_deliverables(self, project_id: UUID) -> list[DeliverableRecord]:
        return list(self.deliverables.get(project_id, []))

    async def update_task_status(
        self,
        project_id: UUID,
        tache_id: str,
        status: PlanStatus,
    ) -> Optional[TaskRecord]:
        tasks = self.tasks.get(project_id, [])
        for index, task in enumerate(tasks):
            if task.tache_id == tache_id:
                updated = task.model_copy(
                    update={"statut": status, "updated_at": datetime.now(timezone.utc)}
                )
                tasks[index] = updated
                return updated
        return None

    async def set_current_phase(self, project_id: UUID, phase_id: str) -> bool:
        brief = self.briefs.get(project_id)
        if brief is None:
            return False
        self.briefs[project_id] = brief.model_copy(update={"current_phase_id": phase_id})
        return True
