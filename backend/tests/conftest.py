"""
Action Plan Service - Test Fixtures
====================================

Shared pytest fixtures for all tests.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from actionplan.api.main import app
from actionplan.core.database import Base, get_db
from actionplan.core.models import (
    ActionPlanDeliverable,
    ActionPlanMilestone,
    ActionPlanPhase,
    ActionPlanTask,
    PlanStatus,
    ProjectBrief,
    ProjectClassification,
)


# ==========================================================================
# Test Database Setup
# ==========================================================================

# Use in-memory SQLite for tests (fast)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


# ==========================================================================
# Database Fixtures
# ==========================================================================

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a clean database session for each test.

    Each test gets its own in-memory engine; the data vanishes on dispose.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide test HTTP client with database override.
    """
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ==========================================================================
# Stored Plan Fixtures
# ==========================================================================

@pytest.fixture
def project_id() -> UUID:
    return uuid4()


@pytest_asyncio.fixture
async def stored_plan(db_session: AsyncSession, project_id: UUID) -> UUID:
    """
    Store a small plan:

        P1 (order 1)
            J1 (index 1) - T1, T2
            T3 (directly under P1, order 2)
        P2 (order 2)
            J2 (index 1) - T4
        J9 -> missing phase PX (orphan)
        T9 -> missing milestone J404 (orphan)
    """
    rows = [
        ProjectBrief(project_id=project_id, budget="10k€", urgence_lancement="rythme_normal"),
        ProjectClassification(project_id=project_id, contraintes_principales="Budget serré"),
        ActionPlanPhase(
            project_id=project_id, phase_id="P2", ordre_execution=2,
            nom_phase="Lancement", statut=PlanStatus.TODO,
        ),
        ActionPlanPhase(
            project_id=project_id, phase_id="P1", ordre_execution=1,
            nom_phase="Validation", objectif_principal="Valider le marché",
            duree_mois="2 mois", statut=PlanStatus.IN_PROGRESS,
        ),
        ActionPlanMilestone(
            project_id=project_id, jalon_id="J1", phase_parent_id="P1", jalon_index=1,
            jalon_nom="Étude de marché", criticite="Critique", semaine="S3",
        ),
        ActionPlanMilestone(
            project_id=project_id, jalon_id="J2", phase_parent_id="P2", jalon_index=1,
            jalon_nom="MVP en ligne", criticite="Important", semaine="S10",
        ),
        ActionPlanMilestone(
            project_id=project_id, jalon_id="J9", phase_parent_id="PX", jalon_index=1,
            jalon_nom="Orphelin",
        ),
        ActionPlanTask(
            project_id=project_id, tache_id="T2", phase_parent_id="P1", jalon_parent_id="J1",
            ordre_execution=2, nom_tache="Interviews clients", responsables=["CEO", "CTO"],
            statut=PlanStatus.DONE, updated_at=BASE_TIME,
        ),
        ActionPlanTask(
            project_id=project_id, tache_id="T1", phase_parent_id="P1", jalon_parent_id="J1",
            ordre_execution=1, nom_tache="Questionnaire", priorite="Élevée",
            statut=PlanStatus.IN_PROGRESS, updated_at=BASE_TIME,
        ),
        ActionPlanTask(
            project_id=project_id, tache_id="T3", phase_parent_id="P1", jalon_parent_id=None,
            ordre_execution=2, nom_tache="Veille concurrentielle",
            updated_at=BASE_TIME,
        ),
        ActionPlanTask(
            project_id=project_id, tache_id="T4", phase_parent_id="P2", jalon_parent_id="J2",
            ordre_execution=1, nom_tache="Landing page",
            updated_at=BASE_TIME - timedelta(days=3),
        ),
        ActionPlanTask(
            project_id=project_id, tache_id="T9", phase_parent_id="P1", jalon_parent_id="J404",
            ordre_execution=1, nom_tache="Orpheline",
            updated_at=BASE_TIME - timedelta(days=3),
        ),
        ActionPlanDeliverable(
            project_id=project_id, livrable_id="L1", phase_parent_id="P1",
            tache_parent_id="T2", livrable_nom="Synthèse interviews",
            statut=PlanStatus.DONE,
        ),
        ActionPlanDeliverable(
            project_id=project_id, livrable_id="L2", phase_parent_id="PX",
            livrable_nom="Livrable orphelin",
        ),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return project_id
