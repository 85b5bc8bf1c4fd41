"""
Step definitions for the HTTP API feature.

These tests drive bfstep.api through FastAPI's TestClient.
"""
import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pytest_bdd import given, parsers, scenarios, then, when

from bfstep.api import app

# Load scenarios from feature file
scenarios("../features/api.feature")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def api_context():
    """Shared context for passing data between steps."""
    return {"client": None, "session_id": None, "response": None, "responses": []}


@pytest.fixture
def api_client(tmp_path, monkeypatch):
    """Create a test client isolated from local config files and env."""
    monkeypatch.chdir(tmp_path)
    for name in ("BFSTEP_CAPACITY", "BFSTEP_OVERFLOW", "BFSTEP_BREAKPOINT", "BFSTEP_STEP_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    return TestClient(app)


# =============================================================================
# Given Steps
# =============================================================================


@given("an API client")
def given_client(api_context, api_client):
    api_context["client"] = api_client


@given(parsers.parse('a session started over HTTP over "{program}"'))
def started_session(api_context, program: str):
    response = api_context["client"].post("/sessions", json={"program": program, "capacity": 16})
    assert response.status_code == 200
    api_context["session_id"] = response.json()["session_id"]


@given(parsers.parse("a session started over HTTP over {count:d} increments with capacity {capacity:d}"))
def started_session_of_increments(api_context, count: int, capacity: int):
    response = api_context["client"].post(
        "/sessions",
        json={"program": "+" * count, "capacity": capacity, "step_limit": count * 2},
    )
    assert response.status_code == 200
    api_context["session_id"] = response.json()["session_id"]


@given(parsers.parse('a context file containing "{text}"'))
def context_file(text: str):
    path = Path.cwd() / ".bfstep" / "config.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


# =============================================================================
# When Steps
# =============================================================================


@when(parsers.parse('I post a session over "{program}"'))
def post_session(api_context, program: str):
    api_context["response"] = api_context["client"].post(
        "/sessions", json={"program": program, "capacity": 16}
    )


@when(parsers.parse('I post a session with capacity {capacity:d} over "{program}"'))
def post_session_with_capacity(api_context, capacity: int, program: str):
    api_context["response"] = api_context["client"].post(
        "/sessions", json={"program": program, "capacity": capacity}
    )


@when(parsers.parse('I post the command "{command}"'))
def post_command(api_context, command: str):
    session_id = api_context["session_id"]
    api_context["response"] = api_context["client"].post(f"/sessions/{session_id}/{command}")


@when(parsers.parse('{clients:d} clients post the command "{command}" at once'))
def post_command_concurrently(api_context, clients: int, command: str):
    client = api_context["client"]
    url = f"/sessions/{api_context['session_id']}/{command}"
    with ThreadPoolExecutor(max_workers=clients) as pool:
        futures = [pool.submit(client.post, url) for _ in range(clients)]
        api_context["responses"] = [future.result() for future in futures]


@when("the server shuts down")
def server_shuts_down(api_context):
    with TestClient(app):
        pass


@when("I get the session")
def get_session(api_context):
    api_context["response"] = api_context["client"].get(f"/sessions/{api_context['session_id']}")


@when(parsers.parse('I get the session "{session_id}"'))
def get_named_session(api_context, session_id: str):
    api_context["response"] = api_context["client"].get(f"/sessions/{session_id}")


@when("I delete the session")
def delete_session(api_context):
    api_context["response"] = api_context["client"].delete(f"/sessions/{api_context['session_id']}")


# =============================================================================
# Then Steps
# =============================================================================


@then(parsers.parse("the response status is {status:d}"))
def response_status(api_context, status: int):
    assert api_context["response"].status_code == status


@then("the response is ok")
def response_ok(api_context):
    assert api_context["response"].json()["ok"] is True


@then(parsers.parse('the response failed with "{kind}"'))
def response_failed(api_context, kind: str):
    body = api_context["response"].json()
    assert body["ok"] is False
    assert body["error_kind"] == kind


@then(parsers.parse("the response state has cursor {cursor:d}"))
def response_state_cursor(api_context, cursor: int):
    body = api_context["response"].json()
    state = body["data"]["state"] if "data" in body else body["state"]
    assert state["cursor"] == cursor


@then(parsers.parse("the response has cursor {cursor:d}"))
def response_cursor(api_context, cursor: int):
    assert api_context["response"].json()["cursor"] == cursor


@then(parsers.parse("the response output is {values}"))
def response_output(api_context, values: str):
    assert api_context["response"].json()["data"]["state"]["output"] == json.loads(values)


@then(parsers.parse('the response detail mentions "{text}"'))
def response_detail(api_context, text: str):
    assert text in api_context["response"].json()["detail"]


@then(parsers.parse("the session has run {count:d} steps"))
def session_steps(api_context, count: int):
    assert all(response.status_code == 200 for response in api_context["responses"])
    state = api_context["client"].get(f"/sessions/{api_context['session_id']}").json()
    assert state["steps"] == count


@then(parsers.parse("the session cell is {value:d}"))
def session_cell(api_context, value: int):
    state = api_context["client"].get(f"/sessions/{api_context['session_id']}").json()
    assert state["cell"] == value
