"""
Action Plan Service - API Dependencies
=======================================

Shared dependencies for FastAPI endpoints.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from actionplan.core.action_plan import ActionPlanService, SqlActionPlanRepository
from actionplan.core.config import Settings, get_settings
from actionplan.core.database import get_db


# ==========================================================================
# Services
# ==========================================================================

def get_action_plan_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ActionPlanService:
    """Request-scoped service over the request's database session."""
    return ActionPlanService(SqlActionPlanRepository(db), settings)


# ==========================================================================
# Type Aliases for Dependency Injection
# ==========================================================================

# Use these in endpoint signatures for cleaner code
DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
ActionPlan = Annotated[ActionPlanService, Depends(get_action_plan_service)]
