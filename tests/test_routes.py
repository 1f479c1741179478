import json

import httpx
from fastapi.testclient import TestClient

from homeassistant_plugin.main import build_app


def _client(api) -> TestClient:
    return TestClient(build_app(ha_api=api))


def test_status_reports_missing_config(make_api):
    api, handler = make_api(httpx.Response(200, json={}), config=None)

    response = _client(api).post("/rpc/homeassistant.status")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["status"] == "missing_config"
    assert body["data"]["plugin"] == "homeassistant"
    assert handler.requests == []


def test_status_reports_connected(make_api):
    api, _ = make_api(httpx.Response(200, json={"message": "API running."}))

    body = _client(api).post("/rpc/homeassistant.status").json()

    assert body["ok"] is True
    assert body["data"]["status"] == "connected"
    assert body["data"]["version"] == "0.1.0"
    assert body["data"]["api"] == {"message": "API running."}
    assert body["data"]["latencyMs"] >= 0


def test_status_reports_upstream_error(make_api):
    api, _ = make_api(httpx.Response(401, text="401: Unauthorized"))

    body = _client(api).post("/rpc/homeassistant.status").json()

    assert body["ok"] is True
    assert body["data"]["status"] == "error"
    assert "401" in body["data"]["error"]


def test_states_single_and_all(make_api):
    state = {"entity_id": "light.kitchen", "state": "off", "attributes": {}}
    api, handler = make_api(httpx.Response(200, json=state))
    client = _client(api)

    body = client.post("/rpc/homeassistant.states", json={"entity_id": "light.kitchen"}).json()
    assert body == {"ok": True, "data": state}
    assert handler.last.url.path == "/api/states/light.kitchen"

    client.post("/rpc/homeassistant.states")
    assert handler.last.url.path == "/api/states"


def test_states_failure(make_api):
    api, _ = make_api(httpx.Response(404, text="Entity not found."))

    body = _client(api).post(
        "/rpc/homeassistant.states", json={"entity_id": "light.nope"}
    ).json()

    assert body == {"ok": False, "data": {"error": "HTTP 404: Entity not found."}}


def test_call_service_requires_domain_and_service(make_api):
    api, handler = make_api(httpx.Response(200, json=[]))

    body = _client(api).post("/rpc/homeassistant.call_service", json={"domain": "light"}).json()

    assert body == {"ok": False, "data": {"error": "domain and service are required"}}
    assert handler.requests == []


def test_call_service_forwards_data(make_api):
    api, handler = make_api(httpx.Response(200, json=[]))

    body = _client(api).post(
        "/rpc/homeassistant.call_service",
        json={
            "domain": "switch",
            "service": "toggle",
            "data": {"entity_id": "switch.fan"},
            "return_response": True,
        },
    ).json()

    assert body == {"ok": True, "data": []}
    assert handler.last.url.path == "/api/services/switch/toggle"
    assert handler.last.url.query == b"return_response"
    assert json.loads(handler.last.content) == {"entity_id": "switch.fan"}


def test_unknown_rpc_method(make_api):
    api, _ = make_api(httpx.Response(200, json={}))

    response = _client(api).post("/rpc/homeassistant.nope")

    assert response.status_code == 404


def test_tool_catalogue_and_invocation(make_api):
    api, _ = make_api(httpx.Response(200, text="2"))
    client = _client(api)

    names = {tool["name"] for tool in client.get("/tools").json()}
    assert "ha_render_template" in names

    response = client.post("/tools/ha_render_template", json={"template": "{{ 1 + 1 }}"})
    assert response.status_code == 200
    text = response.json()["content"][0]["text"]
    assert json.loads(text) == {"rendered": "2"}

    assert client.post("/tools/ha_nope", json={}).status_code == 404


def test_tool_with_non_string_argument(make_api):
    api, handler = make_api(httpx.Response(200, json=[[]]))

    response = _client(api).post(
        "/tools/ha_get_history", json={"entity_id": "sensor.a", "start_time": 123}
    )

    assert response.status_code == 200
    assert json.loads(response.json()["content"][0]["text"]) == [[]]
    assert handler.last.url.path == "/api/history/period/123"
