"""HTTP tests for the workflow routes (status codes and error bodies)."""

import pytest
from httpx import AsyncClient

PERMISSION = "leave.approve"


def _as(user_id: str) -> dict[str, str]:
    return {"X-User-ID": user_id}


def _steps(*strategies: dict) -> list[dict]:
    return [
        {"step_order": n, "required_permission": PERMISSION, "strategy": s}
        for n, s in enumerate(strategies, start=1)
    ]


@pytest.fixture
async def office(org) -> dict[str, str]:
    location = await org.location("Office")
    approver = await org.role("leave_approver", [PERMISSION])
    admin_role = await org.role("administrator", ["system.admin"])
    await org.user("boss", location=location)
    await org.user("clerk", location=location, manager="boss")
    await org.user("u1", location=location)
    await org.assign("u1", approver, location=location)
    await org.user("root", location=location)
    await org.assign("root", admin_role)
    return {"location": location}


async def _template(client: AsyncClient, office, *strategies: dict) -> str:
    response = await client.post(
        "/api/v1/workflows/templates",
        json={
            "name": "Leave",
            "resource_type": "leave",
            "location_id": office["location"],
            "steps": _steps(*strategies),
        },
        headers=_as("root"),
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def _start(client: AsyncClient, template_id: str) -> dict:
    response = await client.post(
        "/api/v1/workflows/instances",
        json={"template_id": template_id, "resource_id": "leave-9", "resource_type": "leave"},
        headers=_as("clerk"),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_template_requires_admin(client: AsyncClient, office) -> None:
    response = await client.post(
        "/api/v1/workflows/templates",
        json={"name": "Leave", "resource_type": "leave", "steps": _steps({"kind": "permission"})},
        headers=_as("u1"),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "AUTHORIZATION_ERROR"


async def test_create_template_rejects_unknown_strategy(client: AsyncClient, office) -> None:
    response = await client.post(
        "/api/v1/workflows/templates",
        json={"name": "Leave", "resource_type": "leave", "steps": _steps({"kind": "lottery"})},
        headers=_as("root"),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "REQUEST_VALIDATION_ERROR"


async def test_create_template_rejects_gaps_in_step_order(client: AsyncClient, office) -> None:
    steps = _steps({"kind": "permission"}, {"kind": "manager"})
    steps[1]["step_order"] = 3
    response = await client.post(
        "/api/v1/workflows/templates",
        json={"name": "Leave", "resource_type": "leave", "steps": steps},
        headers=_as("root"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_approve_flow_and_read_model(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"}, {"kind": "permission"})
    started = await _start(client, template_id)
    assert started["status"] == "UnderReview"
    instance_id = started["instance_id"]

    response = await client.post(
        f"/api/v1/workflows/instances/{instance_id}/approve",
        json={"step_order": 1, "comment": "fine", "expected_version": 1},
        headers=_as("u1"),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["current_step_order"] == 2
    assert body["event"]["action"] == "approved"

    view = (
        await client.get(f"/api/v1/workflows/instances/{instance_id}", headers=_as("clerk"))
    ).json()
    assert view["version"] == 2
    assert view["steps"][0]["acted_by"] == "u1"
    assert view["steps"][1]["resolved_approvers"] == ["u1"]


async def test_stale_version_is_409(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"}, {"kind": "permission"})
    instance_id = (await _start(client, template_id))["instance_id"]
    await client.post(
        f"/api/v1/workflows/instances/{instance_id}/approve",
        json={"step_order": 1},
        headers=_as("u1"),
    )
    response = await client.post(
        f"/api/v1/workflows/instances/{instance_id}/approve",
        json={"step_order": 2, "expected_version": 1},
        headers=_as("u1"),
    )
    assert response.status_code == 409
    assert response.json()["error"] == "CONFLICT"


async def test_unauthorized_approver_is_403(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"})
    instance_id = (await _start(client, template_id))["instance_id"]
    response = await client.post(
        f"/api/v1/workflows/instances/{instance_id}/approve",
        json={"step_order": 1},
        headers=_as("clerk"),
    )
    assert response.status_code == 403


async def test_decline_comment_rules(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"})
    instance_id = (await _start(client, template_id))["instance_id"]
    url = f"/api/v1/workflows/instances/{instance_id}/decline"
    missing = await client.post(url, json={"step_order": 1}, headers=_as("u1"))
    assert missing.status_code == 422
    blank = await client.post(url, json={"step_order": 1, "comment": "  "}, headers=_as("u1"))
    assert blank.status_code == 400
    declined = await client.post(url, json={"step_order": 1, "comment": "no"}, headers=_as("u1"))
    assert declined.status_code == 200
    assert declined.json()["status"] == "Declined"


async def test_route_back_and_resubmit(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"})
    instance_id = (await _start(client, template_id))["instance_id"]
    routed = await client.post(
        f"/api/v1/workflows/instances/{instance_id}/route-back",
        json={"target_step_order": 0, "comment": "add dates"},
        headers=_as("u1"),
    )
    assert routed.status_code == 200
    assert routed.json()["status"] == "Draft"
    resubmitted = await client.post(
        f"/api/v1/workflows/instances/{instance_id}/resubmit", json={}, headers=_as("clerk")
    )
    assert resubmitted.status_code == 200
    assert resubmitted.json()["status"] == "UnderReview"


async def test_unknown_instance_is_404(client: AsyncClient, office) -> None:
    response = await client.get("/api/v1/workflows/instances/missing", headers=_as("u1"))
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "workflow_instance"


async def test_auto_run_configuration_error_is_422(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"}, {"kind": "manager"})
    instance_id = (await _start(client, template_id))["instance_id"]
    response = await client.post(
        f"/api/v1/workflows/instances/{instance_id}/auto-run",
        json={"max_steps": 5},
        headers=_as("root"),
    )
    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "CONFIGURATION_ERROR"
    assert body["details"]["halted_at_step"] == 2
    assert body["details"]["steps_performed"] == 1


async def test_auto_run_completes(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"}, {"kind": "permission"})
    instance_id = (await _start(client, template_id))["instance_id"]
    response = await client.post(
        f"/api/v1/workflows/instances/{instance_id}/auto-run", json={}, headers=_as("root")
    )
    assert response.status_code == 200
    assert response.json() == {
        "instance_id": instance_id,
        "steps_performed": 2,
        "status": "Approved",
        "current_step_order": 2,
        "approvers": ["u1", "u1"],
    }


async def test_pending_lists_instances_awaiting_caller(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"})
    instance_id = (await _start(client, template_id))["instance_id"]

    response = await client.get("/api/v1/workflows/instances/pending", headers=_as("u1"))
    assert response.status_code == 200
    [item] = response.json()
    assert item["instance_id"] == instance_id
    assert item["current_step_order"] == 1
    assert item["total_steps"] == 1
    assert item["creator_id"] == "clerk"

    empty = await client.get("/api/v1/workflows/instances/pending", headers=_as("clerk"))
    assert empty.status_code == 200
    assert empty.json() == []


async def test_preview_approvers(client: AsyncClient, office) -> None:
    template_id = await _template(client, office, {"kind": "permission"}, {"kind": "manager"})
    url = f"/api/v1/workflows/templates/{template_id}/preview-approvers"

    response = await client.post(url, json={"creator_id": "clerk"}, headers=_as("root"))
    assert response.status_code == 200
    assert response.json() == [
        {"step_order": 1, "required_permission": PERMISSION, "resolved_approvers": ["u1"]},
        {"step_order": 2, "required_permission": PERMISSION, "resolved_approvers": []},
    ]

    forbidden = await client.post(url, json={"creator_id": "clerk"}, headers=_as("u1"))
    assert forbidden.status_code == 403
    unknown = await client.post(url, json={"creator_id": "ghost"}, headers=_as("root"))
    assert unknown.status_code == 404
