"""End-to-end tests of the HTTP API over an in-memory store."""

import pytest
from fastapi.testclient import TestClient


def _create_task(client: TestClient, headers: dict[str, str], **overrides) -> dict:
    body = {
        "name": "Change dressing",
        "start_date": "2024-01-01",
        "end_date": "2024-01-15",
        "recurrence_interval_days": 7,
        "task_type": "GENERAL",
        **overrides,
    }
    response = client.post("/api/care-tasks", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.integration
class TestHealthAndAuth:
    def test_health_needs_no_token(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "OK"
        assert response.json()["message"] == "Care Management API is running"
        assert "timestamp" in response.json()

    def test_scheduler_health_reports_disabled(self, client):
        assert client.get("/health/scheduler").json() == {"status": "disabled"}

    def test_missing_token(self, client):
        response = client.get("/api/care-tasks")

        assert response.status_code == 401
        assert response.json() == {"code": "ERR_AUTHENTICATION_FAILED", "error": "No token provided"}

    def test_invalid_token(self, client):
        response = client.get("/api/care-tasks", headers={"Authorization": "Bearer forged"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid token"

    def test_verify_and_user(self, client, auth_headers):
        verified = client.post("/api/auth/verify", headers=auth_headers)
        user = client.get("/api/auth/user", headers=auth_headers)

        assert verified.status_code == 200
        assert verified.json()["user"] == {"uid": "user-1", "email": "carer@example.com", "name": "Casey Carer"}
        assert user.json()["uid"] == "user-1"
        assert user.json()["display_name"] == "Casey Carer"

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"] == "Route not found"


@pytest.mark.integration
class TestCareTaskScenario:
    """Weekly task from 2024-01-01 to 2024-01-15, generated to exhaustion."""

    def test_generate_until_exhausted(self, client, auth_headers):
        created = _create_task(client, auth_headers)
        task_id = created["id"]
        assert created["execution_id"] is not None

        first = client.post(f"/api/care-tasks/{task_id}/generate-executions", headers=auth_headers)
        second = client.post(f"/api/care-tasks/{task_id}/generate-executions", headers=auth_headers)
        exhausted = client.post(f"/api/care-tasks/{task_id}/generate-executions", headers=auth_headers)

        assert first.status_code == 200
        assert second.json()["execution_id"] is not None
        assert exhausted.status_code == 200
        assert exhausted.json()["execution_id"] is None

        listing = client.get(f"/api/care-tasks/{task_id}/executions", headers=auth_headers).json()
        assert [e["scheduled_date"] for e in listing["executions"]] == ["2024-01-15", "2024-01-08", "2024-01-01"]
        assert listing["count"] == 3
        assert listing["total"] == 3

    def test_validation_errors(self, client, auth_headers):
        missing = client.post("/api/care-tasks", json={"name": "No dates"}, headers=auth_headers)
        bad_type = client.post(
            "/api/care-tasks",
            json={"name": "X", "start_date": "2024-01-01", "recurrence_interval_days": 1, "task_type": "OTHER"},
            headers=auth_headers,
        )
        negative = client.post(
            "/api/care-tasks",
            json={"name": "X", "start_date": "2024-01-01", "recurrence_interval_days": -1, "task_type": "GENERAL"},
            headers=auth_headers,
        )

        assert missing.status_code == 400
        assert missing.json()["code"] == "ERR_VALIDATION"
        assert bad_type.status_code == 400
        assert negative.status_code == 400

    def test_one_off_and_inactive_rejections(self, client, auth_headers):
        one_off = _create_task(client, auth_headers, recurrence_interval_days=0, end_date=None)
        rejected = client.post(f"/api/care-tasks/{one_off['id']}/generate-executions", headers=auth_headers)

        assert rejected.status_code == 400
        assert rejected.json() == {"code": "ERR_REJECTED", "error": "One-off task already has its execution"}

        weekly = _create_task(client, auth_headers)
        client.delete(f"/api/care-tasks/{weekly['id']}", headers=auth_headers)
        inactive = client.post(f"/api/care-tasks/{weekly['id']}/generate-executions", headers=auth_headers)

        assert inactive.status_code == 400
        assert inactive.json()["error"] == "Cannot generate executions for inactive task"

    def test_null_required_field_leaves_task_intact(self, client, auth_headers):
        task_id = _create_task(client, auth_headers)["id"]

        rejected = client.put(f"/api/care-tasks/{task_id}", json={"start_date": None}, headers=auth_headers)
        fetched = client.get(f"/api/care-tasks/{task_id}", headers=auth_headers)
        generated = client.post(f"/api/care-tasks/{task_id}/generate-executions", headers=auth_headers)

        assert rejected.status_code == 400
        assert rejected.json()["code"] == "ERR_VALIDATION"
        assert "start_date cannot be null" in rejected.json()["error"]
        assert fetched.status_code == 200
        assert fetched.json()["start_date"] == "2024-01-01"
        assert generated.status_code == 200

    def test_null_end_date_clears_it(self, client, auth_headers):
        task_id = _create_task(client, auth_headers)["id"]

        response = client.put(f"/api/care-tasks/{task_id}", json={"end_date": None}, headers=auth_headers)

        assert response.status_code == 200
        assert client.get(f"/api/care-tasks/{task_id}", headers=auth_headers).json()["end_date"] is None

    def test_unknown_task(self, client, auth_headers):
        response = client.post("/api/care-tasks/missing/generate-executions", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Care task not found"

    def test_list_active_filter(self, client, auth_headers):
        kept = _create_task(client, auth_headers, name="Keep")
        removed = _create_task(client, auth_headers, name="Remove")
        client.delete(f"/api/care-tasks/{removed['id']}", headers=auth_headers)

        active = client.get("/api/care-tasks", headers=auth_headers).json()
        everything = client.get("/api/care-tasks", params={"is_active": "all"}, headers=auth_headers).json()
        invalid = client.get("/api/care-tasks", params={"is_active": "maybe"}, headers=auth_headers)

        assert [t["id"] for t in active["care_tasks"]] == [kept["id"]]
        assert everything["count"] == 2
        assert everything["pagination"] == {"limit": 50, "offset": 0}
        assert invalid.status_code == 400


@pytest.mark.integration
class TestTaskExecutionLifecycle:
    def test_mark_done_stamps_caller(self, client, auth_headers):
        execution_id = _create_task(client, auth_headers)["execution_id"]

        response = client.put(f"/api/task-executions/{execution_id}", json={"status": "DONE"}, headers=auth_headers)

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["status"] == "DONE"
        assert data["executed_by"] == "user-1"
        assert data["execution_date"] == "2024-01-01T09:00:00Z"

    def test_invalid_status(self, client, auth_headers):
        execution_id = _create_task(client, auth_headers)["execution_id"]

        response = client.put(f"/api/task-executions/{execution_id}", json={"status": "FINISHED"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Status must be one of: TODO, DONE, COVERED")

    def test_null_notes_rejected(self, client, auth_headers):
        execution_id = _create_task(client, auth_headers)["execution_id"]

        rejected = client.put(f"/api/task-executions/{execution_id}", json={"notes": None}, headers=auth_headers)
        fetched = client.get(f"/api/task-executions/{execution_id}", headers=auth_headers)

        assert rejected.status_code == 400
        assert "notes cannot be null" in rejected.json()["error"]
        assert fetched.status_code == 200
        assert fetched.json()["notes"] == ""

    def test_missing_execution(self, client, auth_headers):
        response = client.get("/api/task-executions/missing", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Task execution not found"

    def test_list_filters(self, client, auth_headers):
        task_id = _create_task(client, auth_headers)["id"]
        client.post(f"/api/care-tasks/{task_id}/generate-executions", headers=auth_headers)

        in_range = client.get(
            "/api/task-executions",
            params={"care_task_id": task_id, "date_from": "2024-01-05", "date_to": "2024-01-31"},
            headers=auth_headers,
        ).json()
        todo = client.get("/api/task-executions", params={"status": "TODO"}, headers=auth_headers).json()
        bad_date = client.get("/api/task-executions", params={"date_from": "someday"}, headers=auth_headers)

        assert [e["scheduled_date"] for e in in_range["executions"]] == ["2024-01-08"]
        assert todo["count"] == 2
        assert bad_date.status_code == 400


@pytest.mark.integration
class TestCoverage:
    def test_bulk_purchase(self, client, auth_headers):
        """Test E3 covers E1 and E2 and the reverse lookup finds them."""
        task_id = _create_task(client, auth_headers, task_type="PURCHASE")["id"]
        for _ in range(2):
            client.post(f"/api/care-tasks/{task_id}/generate-executions", headers=auth_headers)
        executions = client.get(f"/api/care-tasks/{task_id}/executions", headers=auth_headers).json()["executions"]
        e3, e2, e1 = (e["id"] for e in executions)

        response = client.patch(
            f"/api/task-executions/{e3}/cover-executions", json={"execution_ids": [e1, e2]}, headers=auth_headers
        )
        covered = client.get(f"/api/task-executions/{e3}/covered-executions", headers=auth_headers).json()

        assert response.status_code == 200
        assert response.json() == {
            "message": "2 executions marked as covered",
            "covered_count": 2,
            "covered_executions": [e1, e2],
            "covering_execution_id": e3,
        }
        assert sorted(e["id"] for e in covered["covered_executions"]) == sorted([e1, e2])
        assert all(e["status"] == "COVERED" for e in covered["covered_executions"])

    def test_empty_and_unknown_ids(self, client, auth_headers):
        execution_id = _create_task(client, auth_headers)["execution_id"]

        empty = client.patch(
            f"/api/task-executions/{execution_id}/cover-executions", json={"execution_ids": []}, headers=auth_headers
        )
        unknown = client.patch(
            f"/api/task-executions/{execution_id}/cover-executions",
            json={"execution_ids": ["nope"]},
            headers=auth_headers,
        )

        assert empty.status_code == 400
        assert empty.json()["error"] == "execution_ids must be a non-empty array"
        assert unknown.status_code == 404


@pytest.mark.integration
class TestCatalogAndProfiles:
    def test_category_item_task_chain(self, client, auth_headers):
        category = client.post("/api/categories", json={"name": "Hygiene"}, headers=auth_headers).json()
        item = client.post(
            "/api/care-items",
            json={
                "name": "Gauze",
                "estimated_unit_cost": 4.5,
                "quantity_unit": "box",
                "start_date": "2024-01-01",
                "category_id": category["id"],
            },
            headers=auth_headers,
        ).json()
        task = _create_task(client, auth_headers, task_type="PURCHASE", care_item_id=item["id"])

        execution = client.get(f"/api/task-executions/{task['execution_id']}", headers=auth_headers).json()
        categories = client.get("/api/categories", headers=auth_headers).json()

        assert execution["quantity_unit"] == "piece"
        assert categories["categories"][0]["color_code"] == "#6B7280"

    def test_care_item_unknown_category(self, client, auth_headers):
        response = client.post(
            "/api/care-items",
            json={
                "name": "Gauze",
                "estimated_unit_cost": 4.5,
                "quantity_unit": "box",
                "start_date": "2024-01-01",
                "category_id": "missing",
            },
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Category not found"

    def test_client_profile_flow(self, client, auth_headers):
        created = client.post(
            "/api/client-profiles",
            json={"full_name": "Margaret Hill", "date_of_birth": "1940-06-15", "sex": "Female"},
            headers=auth_headers,
        )
        profile_id = created.json()["id"]

        vitals = client.patch(
            f"/api/client-profiles/{profile_id}/vitals", json={"heart_rate": 70}, headers=auth_headers
        )
        no_vitals = client.patch(f"/api/client-profiles/{profile_id}/vitals", json={}, headers=auth_headers)
        search = client.post("/api/client-profiles/search", json={"age_min": 80}, headers=auth_headers).json()
        fetched = client.get(f"/api/client-profiles/{profile_id}", headers=auth_headers).json()

        assert created.status_code == 201
        assert created.json()["data"]["age"] == 83
        assert vitals.json()["data"]["heart_rate"] == 70
        assert no_vitals.status_code == 400
        assert [p["id"] for p in search["client_profiles"]] == [profile_id]
        assert fetched["latest_vitals"]["heart_rate"] == 70

    def test_client_profile_invalid_sex(self, client, auth_headers):
        response = client.post("/api/client-profiles", json={"sex": "Unknown"}, headers=auth_headers)

        assert response.status_code == 400


@pytest.mark.integration
class TestUserClientProfile:
    def test_profile_missing_before_setup(self, client, auth_headers):
        fetched = client.get("/api/users/client-profile", headers=auth_headers)
        patched = client.patch("/api/users/client-profile", json={"notes": "x"}, headers=auth_headers)

        assert fetched.status_code == 404
        assert fetched.json()["error"] == "Client profile not found"
        assert patched.status_code == 404
        assert patched.json()["error"] == "User profile not found"

    def test_own_profile_lifecycle(self, client, auth_headers):
        saved = client.put(
            "/api/users/client-profile",
            json={"full_name": "Margaret Hill", "date_of_birth": "1940-06-15", "medical_conditions": " "},
            headers=auth_headers,
        )
        patched = client.patch("/api/users/client-profile", json={"allergies": "Penicillin"}, headers=auth_headers)
        fetched = client.get("/api/users/client-profile", headers=auth_headers).json()

        assert saved.status_code == 200
        assert saved.json()["message"] == "Client profile updated successfully"
        assert saved.json()["data"]["user_id"] == "user-1"
        assert saved.json()["data"]["client_profile"]["age"] == 83
        assert patched.json()["data"]["client_profile"]["allergies"] == "Penicillin"
        assert fetched["client_profile"]["full_name"] == "Margaret Hill"

        deactivated = client.delete("/api/users/client-profile", headers=auth_headers)
        hidden = client.get("/api/users/all-client-profiles", headers=auth_headers).json()
        reactivated = client.patch("/api/users/client-profile/reactivate", headers=auth_headers)
        listed = client.get("/api/users/all-client-profiles", params={"search": "hill"}, headers=auth_headers).json()
        searched = client.post(
            "/api/users/search-client-profiles", json={"has_medical_conditions": False}, headers=auth_headers
        ).json()

        assert deactivated.json() == {"message": "Client profile deactivated successfully", "user_id": "user-1"}
        assert hidden["count"] == 0
        assert reactivated.json()["message"] == "Client profile reactivated successfully"
        assert listed["count"] == 1
        assert listed["users_with_client_profiles"][0]["display_name"] == "Casey Carer"
        assert searched["count"] == 1
        assert searched["search_criteria"]["has_medical_conditions"] is False

    def test_invalid_put_keeps_profile(self, client, auth_headers):
        client.put("/api/users/client-profile", json={"full_name": "Ada"}, headers=auth_headers)

        invalid = client.put("/api/users/client-profile", json={"sex": "Unknown"}, headers=auth_headers)

        assert invalid.status_code == 400
        fetched = client.get("/api/users/client-profile", headers=auth_headers).json()
        assert fetched["client_profile"]["full_name"] == "Ada"
