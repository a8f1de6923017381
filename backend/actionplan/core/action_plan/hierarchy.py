"""
Plan Hierarchy Builder
======================

Reassembles the three flat action plan tables into one ordered, indented
list ready for rendering:

    phase (level 0)
        milestone (level 1)
            task (level 2)
        task without milestone (level 1)

The depth is fixed, so the assembly is plain nested iteration. Ordering is
decided only by the (sort_primary, sort_secondary, sort_tertiary) triple,
never by input order.

Rows whose parent cannot be found are left out of the result. The
`assemble_hierarchy` variant reports each omission as a warning string;
`build_hierarchy` returns the elements alone.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional, TypeVar

import structlog

from actionplan.core.models import ElementType
from actionplan.core.schemas import (
    HierarchicalElement,
    MilestoneRecord,
    PhaseRecord,
    TaskRecord,
)

logger = structlog.get_logger()

RecordT = TypeVar("RecordT", PhaseRecord, MilestoneRecord, TaskRecord)


@dataclass
class HierarchyBuild:
    """Result of one assembly: sorted elements plus dropped-row diagnostics."""
    elements: list[HierarchicalElement] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# ==========================================================================
# Public API
# ==========================================================================

def build_hierarchy(
    phases: Optional[Iterable[PhaseRecord]],
    milestones: Optional[Iterable[MilestoneRecord]],
    tasks: Optional[Iterable[TaskRecord]],
) -> list[HierarchicalElement]:
    """Flatten phases, milestones and tasks into one sorted element list."""
    return assemble_hierarchy(phases, milestones, tasks).elements


def assemble_hierarchy(
    phases: Optional[Iterable[PhaseRecord]],
    milestones: Optional[Iterable[MilestoneRecord]],
    tasks: Optional[Iterable[TaskRecord]],
) -> HierarchyBuild:
    """
    Flatten the plan and report which rows were left out.

    Args:
        phases: Phase rows of one project (None is treated as empty)
        milestones: Milestone rows of the same project
        tasks: Task rows of the same project

    Returns:
        HierarchyBuild with elements sorted by their sort triple
    """
    build = HierarchyBuild()

    phases = _unique(phases, "phase_id", "phase", build.warnings)
    milestones = _unique(milestones, "jalon_id", "milestone", build.warnings)
    tasks = _unique(tasks, "tache_id", "task", build.warnings)

    phases_by_id = {phase.phase_id: phase for phase in phases}

    milestones_by_phase: dict[str, list[MilestoneRecord]] = defaultdict(list)
    for milestone in milestones:
        milestones_by_phase[milestone.phase_parent_id].append(milestone)

    tasks_by_milestone: dict[str, list[TaskRecord]] = defaultdict(list)
    for task in tasks:
        if task.jalon_parent_id:
            tasks_by_milestone[task.jalon_parent_id].append(task)

    attached_milestones: set[str] = set()

    for phase in phases:
        build.elements.append(_phase_element(phase))

        for milestone in milestones_by_phase.get(phase.phase_id, []):
            attached_milestones.add(milestone.jalon_id)
            build.elements.append(_milestone_element(milestone, phase))

            for task in tasks_by_milestone.get(milestone.jalon_id, []):
                build.elements.append(_task_element(task, phase, milestone))

    # Tasks attached straight to a phase sit beside its milestones
    for task in tasks:
        if task.jalon_parent_id:
            continue
        phase = phases_by_id.get(task.phase_parent_id)
        if phase is None:
            build.warnings.append(
                f"Task {task.tache_id} dropped: phase {task.phase_parent_id} not found"
            )
            continue
        build.elements.append(_task_element(task, phase, None))

    for milestone in milestones:
        if milestone.jalon_id not in attached_milestones:
            build.warnings.append(
                f"Milestone {milestone.jalon_id} dropped: "
                f"phase {milestone.phase_parent_id} not found"
            )

    for task in tasks:
        if task.jalon_parent_id and task.jalon_parent_id not in attached_milestones:
            build.warnings.append(
                f"Task {task.tache_id} dropped: "
                f"milestone {task.jalon_parent_id} not attached to any phase"
            )

    # list.sort is stable: equal triples keep emission order
    build.elements.sort(key=lambda element: element.sort_key)

    if build.warnings:
        logger.warning(
            "action_plan_rows_dropped",
            dropped=len(build.warnings),
            kept=len(build.elements),
        )

    return build


# ==========================================================================
# Helpers
# ==========================================================================

def _unique(
    records: Optional[Iterable[RecordT]],
    key: str,
    label: str,
    warnings: list[str],
) -> list[RecordT]:
    """Keep the first record per business id."""
    seen: set[str] = set()
    unique: list[RecordT] = []
    for record in records or ():
        record_id = getattr(record, key)
        if record_id in seen:
            warnings.append(f"Duplicate {label} {record_id} ignored")
            continue
        seen.add(record_id)
        unique.append(record)
    return unique


def _phase_element(phase: PhaseRecord) -> HierarchicalElement:
    return HierarchicalElement(
        id=phase.id,
        element_id=phase.phase_id,
        type=ElementType.PHASE,
        level=0,
        name=phase.nom_phase,
        objective=phase.objectif_principal or "",
        duration=phase.duree_mois or "",
        period=phase.periode or "",
        status=phase.statut,
        sort_primary=phase.ordre_execution,
        sort_secondary=0,
        sort_tertiary=0,
        sector_focus=phase.focus_sectoriel,
        budget_minimum=phase.budget_minimum,
        budget_optimal=phase.budget_optimal,
        major_deliverables=list(phase.livrables_majeurs),
        key_resources=list(phase.ressources_cles),
        risks=list(phase.risques_phase),
        created_at=phase.created_at,
        updated_at=phase.updated_at,
    )


def _milestone_element(milestone: MilestoneRecord, phase: PhaseRecord) -> HierarchicalElement:
    return HierarchicalElement(
        id=milestone.id,
        element_id=milestone.jalon_id,
        type=ElementType.MILESTONE,
        level=1,
        name=milestone.jalon_nom,
        objective=milestone.condition_validation or "",
        duration=milestone.semaine or "",
        period=milestone.semaine_cible or "",
        status=milestone.statut,
        criticality=milestone.criticite,
        responsible=milestone.responsable_validation,
        parent_phase=milestone.phase_parent_id,
        sort_primary=phase.ordre_execution,
        sort_secondary=milestone.jalon_index,
        sort_tertiary=0,
        failure_impact=milestone.impact_si_echec,
        created_at=milestone.created_at,
        updated_at=milestone.updated_at,
    )


def _task_element(
    task: TaskRecord,
    phase: PhaseRecord,
    milestone: Optional[MilestoneRecord],
) -> HierarchicalElement:
    if milestone is not None:
        level = 2
        secondary, tertiary = milestone.jalon_index, task.ordre_execution
    else:
        level = 1
        secondary, tertiary = task.ordre_execution, 0

    return HierarchicalElement(
        id=task.id,
        element_id=task.tache_id,
        type=ElementType.TASK,
        level=level,
        name=task.nom_tache,
        objective=task.description_detaillee or "",
        duration=task.duree_estimee or "",
        period=task.priorite or "",
        status=task.statut,
        criticality=task.priorite,
        responsible=", ".join(str(r) for r in task.responsables),
        parent_phase=phase.phase_id,
        parent_milestone=milestone.jalon_id if milestone is not None else None,
        sort_primary=phase.ordre_execution,
        sort_secondary=secondary,
        sort_tertiary=tertiary,
        validation_criteria=list(task.criteres_validation),
        task_dependencies=list(task.dependances_taches),
        required_tools=list(task.outils_necessaires),
        practical_recommendations=task.recommandations_pratiques,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )
