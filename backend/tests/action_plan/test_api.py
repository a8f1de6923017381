"""
Action Plan - API Tests
========================

Endpoint behaviour against the stored sample plan.
"""

from uuid import UUID, uuid4

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from actionplan.api.main import app
from actionplan.core.config import settings
from actionplan.core.models import ActionPlanMilestone


def base(project_id: UUID) -> str:
    return f"/api/v1/projects/{project_id}/action-plan"


# ==========================================================================
# Read Endpoints
# ==========================================================================

class TestGetActionPlan:
    """Tests for GET /projects/{id}/action-plan"""

    async def test_full_plan(self, client: AsyncClient, stored_plan: UUID):
        response = await client.get(base(stored_plan))

        assert response.status_code == 200
        data = response.json()
        assert data["project_id"] == str(stored_plan)
        assert data["brief"]["budget"] == "10k€"
        assert len(data["phases"]) == 2
        assert len(data["tasks"]) == 5
        assert [e["element_id"] for e in data["hierarchy"]] == [
            "P1", "J1", "T1", "T2", "T3", "P2", "J2", "T4",
        ]
        assert len(data["warnings"]) == 2

    async def test_unknown_project_is_empty(self, client: AsyncClient):
        response = await client.get(base(uuid4()))

        assert response.status_code == 200
        data = response.json()
        assert data["brief"] is None
        assert data["hierarchy"] == []

    async def test_invalid_project_id(self, client: AsyncClient):
        response = await client.get("/api/v1/projects/not-a-uuid/action-plan")

        assert response.status_code == 422


class TestGetHierarchy:
    """Tests for GET /projects/{id}/action-plan/hierarchy"""

    async def test_hierarchy(self, client: AsyncClient, stored_plan: UUID):
        response = await client.get(f"{base(stored_plan)}/hierarchy")

        assert response.status_code == 200
        data = response.json()
        first = data["items"][0]
        assert first["type"] == "phase"
        assert first["name"] == "Validation"
        assert first["status"] == "En cours"
        assert data["items"][3]["responsible"] == "CEO, CTO"
        assert data["stats"] == {
            "total": 8,
            "phases": 2,
            "milestones": 2,
            "tasks": 4,
            "todo": 2,
            "in_progress": 1,
            "done": 1,
        }

    async def test_filter_by_status(self, client: AsyncClient, stored_plan: UUID):
        response = await client.get(
            f"{base(stored_plan)}/hierarchy", params={"status": "done"}
        )

        assert response.status_code == 200
        assert [e["element_id"] for e in response.json()["items"]] == ["T2"]

    async def test_all_means_no_filter(self, client: AsyncClient, stored_plan: UUID):
        response = await client.get(
            f"{base(stored_plan)}/hierarchy",
            params={"status": "all", "criticality": "all"},
        )

        assert len(response.json()["items"]) == 8

    async def test_filter_by_criticality_and_search(self, client: AsyncClient, stored_plan: UUID):
        critical = await client.get(
            f"{base(stored_plan)}/hierarchy", params={"criticality": "Critique"}
        )
        searched = await client.get(
            f"{base(stored_plan)}/hierarchy", params={"search": "landing"}
        )

        assert [e["element_id"] for e in critical.json()["items"]] == ["J1"]
        assert [e["element_id"] for e in searched.json()["items"]] == ["T4"]

    async def test_expanded_phases(self, client: AsyncClient, stored_plan: UUID):
        response = await client.get(
            f"{base(stored_plan)}/hierarchy", params={"expanded": ["P2"]}
        )

        assert [e["element_id"] for e in response.json()["items"]] == ["P1", "P2", "J2", "T4"]

    async def test_invalid_status(self, client: AsyncClient, stored_plan: UUID):
        response = await client.get(
            f"{base(stored_plan)}/hierarchy", params={"status": "bogus"}
        )

        assert response.status_code == 422
        assert "bogus" in response.json()["detail"]

    async def test_unknown_criticality_label_is_kept(
        self, client: AsyncClient, db_session: AsyncSession, stored_plan: UUID
    ):
        db_session.add(ActionPlanMilestone(
            project_id=stored_plan, jalon_id="J3", phase_parent_id="P1", jalon_index=2,
            jalon_nom="Prototype", criticite="Haute", semaine="S1",
        ))
        await db_session.commit()

        hierarchy = await client.get(f"{base(stored_plan)}/hierarchy")
        timeline = await client.get(f"{base(stored_plan)}/timeline")

        assert hierarchy.status_code == 200
        by_id = {e["element_id"]: e for e in hierarchy.json()["items"]}
        assert by_id["J3"]["criticality"] == "Haute"
        assert timeline.status_code == 200
        upcoming = [m["jalon_id"] for m in timeline.json()["upcoming_milestones"]]
        assert upcoming == ["J1", "J2", "J3"]


class TestTimeline:
    """Tests for GET /projects/{id}/action-plan/timeline"""

    async def test_timeline(self, client: AsyncClient, stored_plan: UUID):
        response = await client.get(f"{base(stored_plan)}/timeline")

        assert response.status_code == 200
        data = response.json()
        assert data["completion_percentage"] == 13
        assert data["current_phase_id"] == "P1"
        assert data["current_phase"]["nom_phase"] == "Validation"
        assert [m["jalon_id"] for m in data["upcoming_milestones"]] == ["J1", "J2", "J9"]
        assert data["total_tasks"] == 5
        assert (data["completed_tasks"], data["in_progress_tasks"], data["todo_tasks"]) == (1, 1, 3)
        assert data["is_phase_complete"] is False
        assert data["suggested_next_phase"] is None

    async def test_empty_timeline(self, client: AsyncClient):
        response = await client.get(f"{base(uuid4())}/timeline")

        assert response.status_code == 200
        assert response.json()["current_phase"] is None


class TestDeliverables:
    """Tests for GET /projects/{id}/action-plan/deliverables"""

    async def test_deliverables(self, client: AsyncClient, stored_plan: UUID):
        response = await client.get(f"{base(stored_plan)}/deliverables")

        assert response.status_code == 200
        data = response.json()
        by_id = {d["livrable_id"]: d for d in data["items"]}
        assert by_id["L1"]["nom_phase"] == "Validation"
        assert by_id["L1"]["nom_tache"] == "Interviews clients"
        assert by_id["L2"]["nom_phase"] is None
        assert data["counts"] == {"todo": 1, "in_progress": 0, "done": 1}


# ==========================================================================
# Edit Endpoints
# ==========================================================================

class TestUpdateTaskStatus:
    """Tests for PATCH /projects/{id}/action-plan/tasks/{tache_id}/status"""

    async def test_update(self, client: AsyncClient, stored_plan: UUID):
        response = await client.patch(
            f"{base(stored_plan)}/tasks/T3/status", json={"status": "Terminé"}
        )

        assert response.status_code == 200
        assert response.json()["statut"] == "Terminé"

        timeline = await client.get(f"{base(stored_plan)}/timeline")
        assert timeline.json()["completed_tasks"] == 2

    async def test_update_accepts_english_label(self, client: AsyncClient, stored_plan: UUID):
        response = await client.patch(
            f"{base(stored_plan)}/tasks/T4/status", json={"status": "in progress"}
        )

        assert response.status_code == 200
        assert response.json()["statut"] == "En cours"

    async def test_update_not_found(self, client: AsyncClient, stored_plan: UUID):
        response = await client.patch(
            f"{base(stored_plan)}/tasks/T404/status", json={"status": "Terminé"}
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Task not found"

    async def test_update_invalid_status(self, client: AsyncClient, stored_plan: UUID):
        response = await client.patch(
            f"{base(stored_plan)}/tasks/T1/status", json={"status": "Annulé"}
        )

        assert response.status_code == 422


class TestSetCurrentPhase:
    """Tests for PUT /projects/{id}/action-plan/current-phase"""

    async def test_set_phase(self, client: AsyncClient, stored_plan: UUID):
        response = await client.put(
            f"{base(stored_plan)}/current-phase", json={"phase_id": "P2"}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Current phase set to P2"

        timeline = await client.get(f"{base(stored_plan)}/timeline")
        assert timeline.json()["current_phase_id"] == "P2"

    async def test_unknown_phase(self, client: AsyncClient, stored_plan: UUID):
        response = await client.put(
            f"{base(stored_plan)}/current-phase", json={"phase_id": "P9"}
        )

        assert response.status_code == 404

    async def test_empty_phase_id(self, client: AsyncClient, stored_plan: UUID):
        response = await client.put(
            f"{base(stored_plan)}/current-phase", json={"phase_id": ""}
        )

        assert response.status_code == 422


# ==========================================================================
# Health
# ==========================================================================

class TestHealth:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"


class TestAppFactory:
    def test_debug_follows_settings(self):
        assert app.debug == settings.DEBUG
