import json

import pytest
from httpx import AsyncClient

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio

EMAIL_REPLY = json.dumps({"subject": "March update", "body": "We shipped the beta."})


async def test_execute_requires_authentication(client: AsyncClient):
    response = await client.post("/api/v1/agents/execute", json={"agentId": "draft-investor-email", "input": {}})

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Unauthorized"}
    assert response.headers["www-authenticate"] == "Bearer"


async def test_execute_rejects_bad_tokens(client: AsyncClient, make_token):
    for token in (make_token(secret="some-other-secret-value-entirely"), make_token(expires_in=-60), "not-a-jwt"):
        response = await client.post(
            "/api/v1/agents/execute",
            json={"agentId": "draft-investor-email"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 401


async def test_execute_rejects_token_without_audience(client: AsyncClient, make_token):
    token = make_token(aud="somebody-else")
    response = await client.post(
        "/api/v1/agents/execute", json={"agentId": "draft-investor-email"}, headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 401


async def test_execute_success(client: AsyncClient, auth_headers, completion):
    completion.responses.append(EMAIL_REPLY)

    response = await client.post(
        "/api/v1/agents/execute",
        json={"agentId": "draft-investor-email", "input": {"tone": "casual"}},
        headers=auth_headers("alice"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["tokensUsed"] == 100
    assert "error" not in body
    assert body["data"]["email"]["subject"] == "March update"
    assert body["data"]["metrics"]["budgetStatus"] == {"remaining": 100000, "burnRate": 10000}


async def test_execute_missing_agent_id(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/agents/execute", json={"input": {}}, headers=auth_headers())

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "agentId is required"}


async def test_execute_unknown_agent(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/agents/execute", json={"agentId": "time-machine"}, headers=auth_headers())

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "unknown agent: time-machine"}


async def test_execute_invalid_input(client: AsyncClient, auth_headers, completion):
    response = await client.post(
        "/api/v1/agents/execute",
        json={"agentId": "draft-investor-email", "input": {"tone": "furious"}},
        headers=auth_headers(),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"].startswith("invalid input:")
    assert completion.calls == []


async def test_execute_agent_failure_returns_envelope(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/agents/execute", json={"agentId": "draft-investor-email"}, headers=auth_headers()
    )

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to draft investor email: Model call failed: no scripted completion left",
    }


async def test_history_records_each_execution(client: AsyncClient, auth_headers, completion):
    completion.responses.append(EMAIL_REPLY)
    await client.post("/api/v1/agents/execute", json={"agentId": "draft-investor-email"}, headers=auth_headers())
    await client.post("/api/v1/agents/execute", json={"agentId": "draft-investor-email"}, headers=auth_headers())

    response = await client.get("/api/v1/agents/history", headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    statuses = sorted(t["status"] for t in body["tasks"])
    assert statuses == ["completed", "failed"]
    task = body["tasks"][0]
    assert task["agentId"] == "draft-investor-email"
    assert task["agentName"] == "Draft Investor Update"
    assert "startedAt" in task and "durationMs" in task


async def test_history_is_private_to_caller(client: AsyncClient, auth_headers, completion):
    completion.responses.append(EMAIL_REPLY)
    await client.post("/api/v1/agents/execute", json={"agentId": "draft-investor-email"}, headers=auth_headers("alice"))

    response = await client.get("/api/v1/agents/history", headers=auth_headers("bob"))

    assert response.json() == {"tasks": [], "count": 0}


async def test_history_filters_and_limits(client: AsyncClient, auth_headers, repos):
    from founderos_ai.agent_core.schemas.domain import ExecutionRecord

    for agent_id in ("strategic-planner", "progress-analyzer", "progress-analyzer"):
        await repos.executions.append(ExecutionRecord(user_id="alice", agent_id=agent_id))

    filtered = await client.get("/api/v1/agents/history", params={"agentId": "progress-analyzer"}, headers=auth_headers())
    limited = await client.get("/api/v1/agents/history", params={"limit": 1}, headers=auth_headers())
    invalid = await client.get("/api/v1/agents/history", params={"limit": 0}, headers=auth_headers())

    assert filtered.json()["count"] == 2
    assert limited.json()["count"] == 1
    assert invalid.status_code == 422


async def test_history_store_failure_maps_to_503(client: AsyncClient, auth_headers, agent_service, monkeypatch):
    from founderos_ai.agent_core.errors import QueryError

    async def broken(*args, **kwargs):
        raise QueryError("database unreachable")

    monkeypatch.setattr(agent_service, "history", broken)

    response = await client.get("/api/v1/agents/history", headers=auth_headers())

    assert response.status_code == 503
    assert response.json()["success"] is False


async def test_list_agents(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/agents", headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 11
    assert body["categories"] == ["Strategic", "Fundraising", "Product", "Customer Development", "Network Management"]
    assert {"id", "name", "description", "category", "icon", "requiredInputs"} <= set(body["agents"][0])


async def test_list_agents_by_category(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/agents", params={"category": "Strategic"}, headers=auth_headers())

    assert [a["id"] for a in response.json()["agents"]] == ["strategic-planner", "progress-analyzer"]


async def test_get_agent(client: AsyncClient, auth_headers):
    found = await client.get("/api/v1/agents/generate-product-spec", headers=auth_headers())
    missing = await client.get("/api/v1/agents/time-machine", headers=auth_headers())

    assert found.status_code == 200
    assert found.json()["name"] == "Generate Product Spec"
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "unknown agent: time-machine"}
