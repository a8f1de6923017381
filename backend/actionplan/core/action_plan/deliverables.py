"""
Deliverable enrichment: attach phase and task names to each deliverable.
"""

from typing import Iterable, Optional

from actionplan.core.schemas import (
    DeliverableRecord,
    DeliverableView,
    PhaseRecord,
    TaskRecord,
)


def enrich_deliverables(
    deliverables: Optional[Iterable[DeliverableRecord]],
    phases: Optional[Iterable[PhaseRecord]],
    tasks: Optional[Iterable[TaskRecord]],
) -> list[DeliverableView]:
    """Resolve `nom_phase` / `nom_tache`; unknown parents leave them as None."""
    phase_names: dict[str, str] = {}
    for phase in phases or ():
        phase_names.setdefault(phase.phase_id, phase.nom_phase)

    task_names: dict[str, str] = {}
    for task in tasks or ():
        task_names.setdefault(task.tache_id, task.nom_tache)

    return [
        DeliverableView(
            **deliverable.model_dump(exclude={"nom_phase", "nom_tache"}),
            nom_phase=phase_names.get(deliverable.phase_parent_id) or None,
            nom_tache=task_names.get(deliverable.tache_parent_id or "") or None,
        )
        for deliverable in deliverables or ()
    ]
