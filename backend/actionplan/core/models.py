"""
Action Plan Service - Database Models
======================================

SQLAlchemy models for the action plan tables.

Every row is scoped to one project. Parent links between phases,
milestones (jalons) and tasks (taches) are business identifiers rather
than foreign keys: plan generation writes each table independently, so a
row may reference a parent that does not exist (yet).
"""

import enum
import unicodedata
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Float,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from actionplan.core.database import Base


def _fold(value: str) -> str:
    """Lowercase and strip accents so labels compare loosely."""
    decomposed = unicodedata.normalize("NFKD", value.strip().lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


# ==========================================================================
# Enums
# ==========================================================================

class PlanStatus(str, enum.Enum):
    """Progress status shared by phases, milestones, tasks and deliverables."""
    TODO = "À faire"
    IN_PROGRESS = "En cours"
    DONE = "Terminé"

    @classmethod
    def parse(cls, value: "PlanStatus | str | None") -> "PlanStatus":
        """Accept stored labels, unaccented or English spellings."""
        if value is None:
            return cls.TODO
        if isinstance(value, cls):
            return value
        folded = _fold(str(value))
        if not folded:
            return cls.TODO
        for status, aliases in _STATUS_ALIASES.items():
            if folded in aliases:
                return status
        raise ValueError(f"Unknown status: {value!r}")


_STATUS_ALIASES = {
    PlanStatus.TODO: {"a faire", "to do", "todo"},
    PlanStatus.IN_PROGRESS: {"en cours", "in progress", "in_progress"},
    PlanStatus.DONE: {"termine", "done"},
}


class Criticality(str, enum.Enum):
    """Milestone criticality labels."""
    CRITICAL = "Critique"
    IMPORTANT = "Important"
    NORMAL = "Normal"
    BLOCKING = "Bloquante"
    HIGH = "Élevée"
    MODERATE = "Modérée"

    @classmethod
    def parse(cls, value: "Criticality | str | None") -> Optional["Criticality"]:
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        folded = _fold(str(value))
        if not folded:
            return None
        for criticality in cls:
            if _fold(criticality.value) == folded or criticality.name.lower() == folded:
                return criticality
        raise ValueError(f"Unknown criticality: {value!r}")


class ElementType(str, enum.Enum):
    """Node kinds of the flattened plan hierarchy."""
    PHASE = "phase"
    MILESTONE = "milestone"
    TASK = "task"


def _status_column() -> Mapped[PlanStatus]:
    return mapped_column(
        Enum(
            PlanStatus,
            values_callable=lambda e: [member.value for member in e],
            native_enum=False,
            length=20,
        ),
        default=PlanStatus.TODO,
        nullable=False,
    )


# ==========================================================================
# Mixins
# ==========================================================================

class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ProjectScopedMixin:
    """Mixin for rows owned by one project (and optionally one user)."""

    id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    project_id: Mapped[UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
    )
    user_id: Mapped[Optional[UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
    )


# ==========================================================================
# Project Context
# ==========================================================================

class ProjectBrief(Base, ProjectScopedMixin, TimestampMixin):
    """
    Questionnaire answers the action plan was generated from.

    Also stores the phase the founder manually marked as current.
    """

    __tablename__ = "action_plan_user_responses"

    roles: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    budget: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type_investissement: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    date_lancement_prevu: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    urgence_lancement: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    prise_de_risque: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    preference_avancement: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ressources_disponibles: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    current_phase_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<ProjectBrief {self.project_id}>"


class ProjectClassification(Base, ProjectScopedMixin, TimestampMixin):
    """AI classification of the project (stakes, constraints, opportunities)."""

    __tablename__ = "action_plan_classification"

    enjeux_strategiques: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON text
    contraintes_principales: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    opportunites_principales: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    axes_prioritaires: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    specificites_sectorielles: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    parametres_recommandes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ProjectClassification {self.project_id}>"


# ==========================================================================
# Plan Hierarchy
# ==========================================================================

class ActionPlanPhase(Base, ProjectScopedMixin, TimestampMixin):
    """Top-level plan segment, ordered by ordre_execution."""

    __tablename__ = "action_plan_phases"

    phase_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    phase_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ordre_execution: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    nom_phase: Mapped[str] = mapped_column(String(500), nullable=False)
    objectif_principal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duree_mois: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    periode: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    focus_sectoriel: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    budget_minimum: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    budget_optimal: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    livrables_majeurs: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    ressources_cles: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    risques_phase: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    statut: Mapped[PlanStatus] = _status_column()

    def __repr__(self) -> str:
        return f"<ActionPlanPhase {self.phase_id}>"


class ActionPlanMilestone(Base, ProjectScopedMixin, TimestampMixin):
    """Checkpoint (jalon) inside a phase."""

    __tablename__ = "action_plan_jalons"

    jalon_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    jalon_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    phase_parent_id: Mapped[str] = mapped_column(String(100), nullable=False)
    jalon_nom: Mapped[str] = mapped_column(String(500), nullable=False)
    semaine: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    semaine_cible: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    condition_validation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    criticite: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    impact_si_echec: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responsable_validation: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    statut: Mapped[PlanStatus] = _status_column()

    def __repr__(self) -> str:
        return f"<ActionPlanMilestone {self.jalon_id}>"


class ActionPlanTask(Base, ProjectScopedMixin, TimestampMixin):
    """Leaf unit of work (tache), under a milestone or directly under a phase."""

    __tablename__ = "action_plan_taches"

    tache_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    tache_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    phase_parent_id: Mapped[str] = mapped_column(String(100), nullable=False)
    jalon_parent_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ordre_execution: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    nom_tache: Mapped[str] = mapped_column(String(500), nullable=False)
    description_detaillee: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priorite: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    criticite_justification: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responsables: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    duree_estimee: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    livrables: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    criteres_validation: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    dependances_taches: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    outils_necessaires: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    recommandations_pratiques: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    statut: Mapped[PlanStatus] = _status_column()

    def __repr__(self) -> str:
        return f"<ActionPlanTask {self.tache_id}>"


class ActionPlanDeliverable(Base, ProjectScopedMixin, TimestampMixin):
    """Expected output (livrable) of a phase or task."""

    __tablename__ = "action_plan_livrables"

    livrable_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    phase_parent_id: Mapped[str] = mapped_column(String(100), nullable=False)
    tache_parent_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    livrable_nom: Mapped[str] = mapped_column(String(500), nullable=False)
    format_attendu: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    criteres_qualite: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    validateur: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    statut: Mapped[PlanStatus] = _status_column()

    def __repr__(self) -> str:
        return f"<ActionPlanDeliverable {self.livrable_id}>"
