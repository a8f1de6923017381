"""
Action Plan Service - Action Plan API
======================================

Read endpoints for a project's action plan (full plan, hierarchy,
timeline, deliverables) and the two edits made from the plan page:
task status and current phase.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from actionplan.api.deps import ActionPlan, AppSettings
from actionplan.core.models import PlanStatus
from actionplan.core.schemas import (
    ActionPlanResponse,
    CurrentPhaseUpdate,
    DeliverableListResponse,
    HierarchyResponse,
    MessageResponse,
    TaskRecord,
    TaskStatusUpdate,
    TimelineSummary,
)

router = APIRouter(prefix="/projects/{project_id}/action-plan", tags=["Action Plan"])


# ==========================================================================
# Helper Functions
# ==========================================================================

def parse_status_filter(value: Optional[str]) -> Optional[PlanStatus]:
    """Parse the status query parameter or raise 422."""
    if value is None or value == "all":
        return None
    try:
        return PlanStatus.parse(value)
    except ValueError as e:
        raise HTTPException(
            status_code=422,
            detail=str(e),
        )


# ==========================================================================
# Read Endpoints
# ==========================================================================

@router.get(
    "",
    response_model=ActionPlanResponse,
    summary="Get action plan",
    responses={
        200: {"description": "Full action plan with hierarchy"},
    },
)
async def get_action_plan(
    project_id: UUID,
    service: ActionPlan,
    settings: AppSettings,
) -> ActionPlanResponse:
    """
    Get the whole plan of a project.

    A project without a plan returns empty collections.
    """
    data = await service.load(project_id)
    return data.to_response(include_warnings=settings.ACTION_PLAN_INCLUDE_WARNINGS)


@router.get(
    "/hierarchy",
    response_model=HierarchyResponse,
    summary="Get plan hierarchy",
    responses={
        200: {"description": "Flattened, sorted plan tree"},
        422: {"description": "Invalid status filter"},
    },
)
async def get_hierarchy(
    project_id: UUID,
    service: ActionPlan,
    status_filter: Optional[str] = Query(
        None, alias="status", description="Filter by status ('all' for none)"
    ),
    criticality: Optional[str] = Query(
        None, description="Filter by milestone criticality or task priority"
    ),
    search: Optional[str] = Query(
        None, description="Search in name, objective and responsible"
    ),
    expanded: Optional[list[str]] = Query(
        None, description="Expanded phase ids; children of other phases are hidden"
    ),
) -> HierarchyResponse:
    """
    Get the flattened phase → milestone → task tree.
    """
    if criticality == "all":
        criticality = None

    return await service.hierarchy(
        project_id,
        status=parse_status_filter(status_filter),
        criticality=criticality,
        search=search,
        expanded_phases=expanded,
    )


@router.get(
    "/timeline",
    response_model=TimelineSummary,
    summary="Get plan timeline",
)
async def get_timeline(
    project_id: UUID,
    service: ActionPlan,
) -> TimelineSummary:
    """
    Get completion percentage, current phase and upcoming milestones.
    """
    return await service.timeline(project_id)


@router.get(
    "/deliverables",
    response_model=DeliverableListResponse,
    summary="List deliverables",
)
async def list_deliverables(
    project_id: UUID,
    service: ActionPlan,
) -> DeliverableListResponse:
    return await service.deliverables(project_id)


# ==========================================================================
# Edit Endpoints
# ==========================================================================

@router.patch(
    "/tasks/{tache_id}/status",
    response_model=TaskRecord,
    summary="Update task status",
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
        422: {"description": "Validation error"},
    },
)
async def update_task_status(
    project_id: UUID,
    tache_id: str,
    data: TaskStatusUpdate,
    service: ActionPlan,
) -> TaskRecord:
    """
    Change the status of one task.
    """
    task = await service.update_task_status(project_id, tache_id, data.status)

    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )

    return task


@router.put(
    "/current-phase",
    response_model=MessageResponse,
    summary="Set current phase",
    responses={
        200: {"description": "Current phase stored"},
        404: {"description": "Phase or project brief not found"},
    },
)
async def set_current_phase(
    project_id: UUID,
    data: CurrentPhaseUpdate,
    service: ActionPlan,
) -> MessageResponse:
    """
    Manually select the phase the project is working on.
    """
    stored = await service.set_current_phase(project_id, data.phase_id)

    if not stored:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Phase or project brief not found",
        )

    return MessageResponse(message=f"Current phase set to {data.phase_id}")
