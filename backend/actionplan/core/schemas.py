"""
Action Plan Service - Pydantic Schemas
=======================================

Typed records validated at the storage boundary, plus request and
response schemas for the API.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from actionplan.core.models import Criticality, ElementType, PlanStatus

logger = structlog.get_logger()


# ==========================================================================
# Base Schemas
# ==========================================================================

class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class RecordSchema(BaseSchema):
    """
    Row of one action plan table.

    Optional columns may be missing or NULL in storage; they are coerced
    to neutral values instead of failing validation.
    """

    id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("statut", mode="before", check_fields=False)
    @classmethod
    def parse_status(cls, v: Any) -> PlanStatus:
        return PlanStatus.parse(v)


def _none_to_zero(v: Any) -> Any:
    return 0 if v is None else v


def _none_to_list(v: Any) -> Any:
    return [] if v is None else v


# ==========================================================================
# Plan Records
# ==========================================================================

class PhaseRecord(RecordSchema):
    """A phase row (root of the plan hierarchy)."""

    phase_id: str
    phase_index: int = 0
    ordre_execution: int = 0
    nom_phase: str = ""
    objectif_principal: Optional[str] = None
    duree_mois: Optional[str] = None
    periode: Optional[str] = None
    focus_sectoriel: Optional[str] = None
    budget_minimum: Optional[float] = None
    budget_optimal: Optional[float] = None
    livrables_majeurs: list[Any] = Field(default_factory=list)
    ressources_cles: list[Any] = Field(default_factory=list)
    risques_phase: list[Any] = Field(default_factory=list)
    statut: PlanStatus = PlanStatus.TODO

    default_orders = field_validator("phase_index", "ordre_execution", mode="before")(_none_to_zero)
    default_lists = field_validator(
        "livrables_majeurs", "ressources_cles", "risques_phase", mode="before"
    )(_none_to_list)


class MilestoneRecord(RecordSchema):
    """A milestone (jalon) row, child of one phase."""

    jalon_id: str
    jalon_index: int = 0
    phase_parent_id: str
    jalon_nom: str = ""
    semaine: Optional[str] = None
    semaine_cible: Optional[str] = None
    condition_validation: Optional[str] = None
    criticite: Optional[str] = None
    impact_si_echec: Optional[str] = None
    responsable_validation: Optional[str] = None
    statut: PlanStatus = PlanStatus.TODO

    default_orders = field_validator("jalon_index", mode="before")(_none_to_zero)

    @field_validator("criticite", mode="before")
    @classmethod
    def parse_criticality(cls, v: Any) -> Optional[str]:
        """Known labels are normalised; any other text is kept as written."""
        try:
            criticality = Criticality.parse(v)
        except ValueError:
            logger.warning("action_plan_unknown_criticality", criticite=str(v))
            return str(v).strip()
        return criticality.value if criticality else None


class TaskRecord(RecordSchema):
    """A task (tache) row, under a milestone or directly under a phase."""

    tache_id: str
    tache_index: int = 0
    phase_parent_id: str
    jalon_parent_id: Optional[str] = None
    ordre_execution: int = 0
    nom_tache: str = ""
    description_detaillee: Optional[str] = None
    priorite: Optional[str] = None
    criticite_justification: Optional[str] = None
    responsables: list[Any] = Field(default_factory=list)
    duree_estimee: Optional[str] = None
    livrables: list[Any] = Field(default_factory=list)
    criteres_validation: list[Any] = Field(default_factory=list)
    dependances_taches: list[Any] = Field(default_factory=list)
    outils_necessaires: list[Any] = Field(default_factory=list)
    recommandations_pratiques: Optional[str] = None
    statut: PlanStatus = PlanStatus.TODO

    default_orders = field_validator("tache_index", "ordre_execution", mode="before")(_none_to_zero)
    default_lists = field_validator(
        "responsables",
        "livrables",
        "criteres_validation",
        "dependances_taches",
        "outils_necessaires",
        mode="before",
    )(_none_to_list)

    @field_validator("jalon_parent_id", mode="before")
    @classmethod
    def blank_milestone_is_none(cls, v: Any) -> Optional[str]:
        """An empty milestone reference means the task hangs off its phase."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


class DeliverableRecord(RecordSchema):
    """A deliverable (livrable) row."""

    livrable_id: str
    phase_parent_id: str
    tache_parent_id: Optional[str] = None
    livrable_nom: str = ""
    format_attendu: Optional[str] = None
    criteres_qualite: list[Any] = Field(default_factory=list)
    validateur: Optional[str] = None
    statut: PlanStatus = PlanStatus.TODO

    default_lists = field_validator("criteres_qualite", mode="before")(_none_to_list)


class ProjectBriefRecord(RecordSchema):
    """Questionnaire answers that seeded the plan."""

    roles: Optional[str] = None
    budget: Optional[str] = None
    type_investissement: Optional[str] = None
    date_lancement_prevu: Optional[str] = None
    urgence_lancement: Optional[str] = None
    prise_de_risque: Optional[str] = None
    preference_avancement: Optional[str] = None
    ressources_disponibles: Optional[str] = None
    current_phase_id: Optional[str] = None


class ProjectClassificationRecord(RecordSchema):
    """AI classification of the project."""

    enjeux_strategiques: Optional[str] = None
    contraintes_principales: Optional[str] = None
    opportunites_principales: Optional[str] = None
    axes_prioritaires: Optional[str] = None
    specificites_sectorielles: Optional[str] = None
    parametres_recommandes: Optional[str] = None


# ==========================================================================
# Hierarchy Schemas
# ==========================================================================

class HierarchicalElement(BaseSchema):
    """
    One row of the flattened plan tree.

    `level` drives indentation; the sort triple gives the total order
    (phase order, milestone index or direct-task order, task order).
    """

    id: Optional[UUID] = None
    element_id: str
    type: ElementType
    level: int
    name: str
    objective: str = ""
    duration: str = ""
    period: str = ""
    status: PlanStatus
    criticality: Optional[str] = None
    responsible: Optional[str] = None
    parent_phase: Optional[str] = None
    parent_milestone: Optional[str] = None
    sort_primary: int
    sort_secondary: int
    sort_tertiary: int

    # Phase details
    sector_focus: Optional[str] = None
    budget_minimum: Optional[float] = None
    budget_optimal: Optional[float] = None
    major_deliverables: Optional[list[Any]] = None
    key_resources: Optional[list[Any]] = None
    risks: Optional[list[Any]] = None

    # Milestone details
    failure_impact: Optional[str] = None

    # Task details
    validation_criteria: Optional[list[Any]] = None
    task_dependencies: Optional[list[Any]] = None
    required_tools: Optional[list[Any]] = None
    practical_recommendations: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.sort_primary, self.sort_secondary, self.sort_tertiary)


class HierarchyStats(BaseSchema):
    """Element counts; status counts cover tasks only."""

    total: int = 0
    phases: int = 0
    milestones: int = 0
    tasks: int = 0
    todo: int = 0
    in_progress: int = 0
    done: int = 0


class HierarchyResponse(BaseSchema):
    """Filtered hierarchy with statistics over the unfiltered tree."""

    items: list[HierarchicalElement]
    stats: HierarchyStats
    warnings: list[str] = Field(default_factory=list)


# ==========================================================================
# Deliverable Schemas
# ==========================================================================

class DeliverableView(DeliverableRecord):
    """Deliverable enriched with the names of its phase and task."""

    nom_phase: Optional[str] = None
    nom_tache: Optional[str] = None


class StatusCounts(BaseSchema):
    """Item counts per progress status."""

    todo: int = 0
    in_progress: int = 0
    done: int = 0


class DeliverableListResponse(BaseSchema):
    items: list[DeliverableView]
    counts: StatusCounts


# ==========================================================================
# Timeline Schemas
# ==========================================================================

class TimelineSummary(BaseSchema):
    """Completion-based progress tracking for the plan."""

    completion_percentage: int = 0
    current_phase: Optional[PhaseRecord] = None
    current_phase_id: Optional[str] = None
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    todo_tasks: int = 0
    total_milestones: int = 0
    completed_milestones: int = 0
    tasks_in_current_phase: list[TaskRecord] = Field(default_factory=list)
    milestones_in_current_phase: list[MilestoneRecord] = Field(default_factory=list)
    upcoming_milestones: list[MilestoneRecord] = Field(default_factory=list)
    phases: list[PhaseRecord] = Field(default_factory=list)
    is_phase_complete: bool = False
    suggested_next_phase: Optional[PhaseRecord] = None


# ==========================================================================
# Action Plan Schemas
# ==========================================================================

class ActionPlanResponse(BaseSchema):
    """Everything the plan page renders for one project."""

    project_id: UUID
    brief: Optional[ProjectBriefRecord] = None
    classification: Optional[ProjectClassificationRecord] = None
    phases: list[PhaseRecord] = Field(default_factory=list)
    milestones: list[MilestoneRecord] = Field(default_factory=list)
    tasks: list[TaskRecord] = Field(default_factory=list)
    deliverables: list[DeliverableView] = Field(default_factory=list)
    hierarchy: list[HierarchicalElement] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TaskStatusUpdate(BaseSchema):
    """Schema for changing a task's status."""

    status: PlanStatus

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: Any) -> PlanStatus:
        return PlanStatus.parse(v)


class CurrentPhaseUpdate(BaseSchema):
    """Schema for manually selecting the current phase."""

    phase_id: str = Field(min_length=1, max_length=100)


# ==========================================================================
# Common Response Schemas
# ==========================================================================

class MessageResponse(BaseSchema):
    """Generic message response."""

    message: str
    success: bool = True


class ErrorResponse(BaseSchema):
    """Error response schema."""

    error: str
    detail: Optional[str] = None
    code: Optional[str] = None


class HealthResponse(BaseSchema):
    """Health check response."""

    status: str
    version: str
    environment: str
    database: str
