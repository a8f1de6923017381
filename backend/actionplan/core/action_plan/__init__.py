"""
Action Plan
===========

Phase → milestone → task plans generated for each project.

Components:
- build_hierarchy / assemble_hierarchy: flatten the three tables into a sorted tree
- filter_elements / visible_elements / hierarchy_stats: table views over the tree
- summarize_timeline: completion-based progress tracking
- enrich_deliverables: deliverables with phase/task names
- ActionPlanRepository: storage interface (SQL and in-memory implementations)
- ActionPlanService: per-project read model and edits
"""

from actionplan.core.action_plan.deliverables import enrich_deliverables
from actionplan.core.action_plan.hierarchy import (
    HierarchyBuild,
    assemble_hierarchy,
    build_hierarchy,
)
from actionplan.core.action_plan.repository import (
    ActionPlanRepository,
    InMemoryActionPlanRepository,
    SqlActionPlanRepository,
)
from actionplan.core.action_plan.service import ActionPlanData, ActionPlanService
from actionplan.core.action_plan.timeline import summarize_timeline
from actionplan.core.action_plan.views import (
    filter_elements,
    hierarchy_stats,
    visible_elements,
)

__all__ = [
    "ActionPlanData",
    "ActionPlanRepository",
    "ActionPlanService",
    "HierarchyBuild",
    "InMemoryActionPlanRepository",
    "SqlActionPlanRepository",
    "assemble_hierarchy",
    "build_hierarchy",
    "enrich_deliverables",
    "filter_elements",
    "hierarchy_stats",
    "summarize_timeline",
    "visible_elements",
]
