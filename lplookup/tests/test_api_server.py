from __future__ import annotations

import logging

from fastapi.testclient import TestClient

from lplookup.client.errors import TransportFailure
from lplookup.client.memory import InMemoryLifecyclePolicyClient
from lplookup.client.protocol import BatchGetLifecyclePolicyOutput

LP1 = {
    "name": "lp1",
    "description": "desc",
    "type": "RETENTION",
    "createdDate": 1700000000000,
    "lastModifiedDate": 1700003600000,
    "policy": {"Rules": []},
    "policyVersion": "v1",
}


def _client(monkeypatch, remote, *, keys: str | None = None) -> TestClient:
    if keys is None:
        monkeypatch.delenv("LPLOOKUP_API_KEYS", raising=False)
    else:
        monkeypatch.setenv("LPLOOKUP_API_KEYS", keys)
    monkeypatch.delenv("LPLOOKUP_REQUIRE_AUTH", raising=False)

    from lplookup.api.server import create_app

    return TestClient(create_app(client=remote))


def test_api_reads_normalized_record(monkeypatch):
    client = _client(monkeypatch, InMemoryLifecyclePolicyClient([LP1]))

    r = client.get("/lifecycle-policies/RETENTION/lp1")
    assert r.status_code == 200
    assert r.headers.get("x-request-id")
    assert r.json() == {
        "id": "lp1",
        "identifier": "lp1",
        "name": "lp1",
        "description": "desc",
        "type": "RETENTION",
        "created_at": "2023-11-14T22:13:20Z",
        "last_modified_at": "2023-11-14T23:13:20Z",
        "policy_document": '{"Rules":[]}',
        "policy_version": "v1",
    }


def test_api_validation_errors_list_every_violation(monkeypatch):
    remote = InMemoryLifecyclePolicyClient([LP1])
    client = _client(monkeypatch, remote)

    r = client.get("/lifecycle-policies/DELETION/ab")
    assert r.status_code == 422
    body = r.json()["detail"]
    assert body["error"] == "invalid_lookup_key"
    assert {v["kind"] for v in body["violations"]} == {"LengthOutOfRange", "UnknownEnumValue"}
    assert remote.calls == []


def test_api_maps_resolve_errors_to_statuses(monkeypatch):
    client = _client(monkeypatch, InMemoryLifecyclePolicyClient([]))
    r = client.get("/lifecycle-policies/retention/my-policy")
    assert r.status_code == 404
    body = r.json()["detail"]
    assert body["error"] == "NotFound"
    assert "my-policy" in body["summary"]

    class _Twice:
        def batch_get_lifecycle_policy(self, identifiers, *, timeout_seconds=None):
            return BatchGetLifecyclePolicyOutput(details=(LP1, dict(LP1)))

    r = _client(monkeypatch, _Twice()).get("/lifecycle-policies/retention/lp1")
    assert r.status_code == 409

    broken = dict(LP1, policy=float("nan"))
    r = _client(monkeypatch, InMemoryLifecyclePolicyClient([broken])).get(
        "/lifecycle-policies/retention/lp1"
    )
    assert r.status_code == 502
    assert r.json()["detail"]["error"] == "DocumentSerializationFailed"

    class _Down:
        def batch_get_lifecycle_policy(self, identifiers, *, timeout_seconds=None):
            raise TransportFailure("request timed out after 1.0s")

    r = _client(monkeypatch, _Down()).get("/lifecycle-policies/retention/lp1")
    assert r.status_code == 504
    assert "timed out" in r.json()["detail"]["detail"]


def test_api_requires_key_when_configured(monkeypatch):
    client = _client(
        monkeypatch,
        InMemoryLifecyclePolicyClient([LP1]),
        keys="alice=k1;bob=k2|",
    )

    assert client.get("/lifecycle-policies/retention/lp1").status_code == 401
    assert (
        client.get(
            "/lifecycle-policies/retention/lp1", headers={"X-LPLOOKUP-API-Key": "wrong"}
        ).status_code
        == 401
    )
    assert (
        client.get("/lifecycle-policies/retention/lp1", headers={"X-LPLOOKUP-API-Key": "k2"}).status_code
        == 403
    )
    r = client.get("/lifecycle-policies/retention/lp1", headers={"X-LPLOOKUP-API-Key": "k1"})
    assert r.status_code == 200
    assert r.json()["id"] == "lp1"


def test_api_without_remote_answers_503(monkeypatch):
    monkeypatch.delenv("LPLOOKUP_ENDPOINT_URL", raising=False)
    client = _client(monkeypatch, None)

    health = client.get("/health").json()
    assert health["ok"] is True
    assert health["remote_configured"] is False

    r = client.get("/lifecycle-policies/retention/lp1")
    assert r.status_code == 503


def test_api_lists_policy_types(monkeypatch):
    client = _client(monkeypatch, InMemoryLifecyclePolicyClient())
    assert client.get("/lifecycle-policy-types").json() == {"types": ["retention"]}


def test_api_auth_errors_use_error_payload(monkeypatch):
    client = _client(monkeypatch, InMemoryLifecyclePolicyClient([LP1]), keys="bob=k2|")

    r = client.get("/lifecycle-policies/retention/lp1")
    assert r.json()["detail"]["error"] == "unauthorized"
    r = client.get("/lifecycle-policies/retention/lp1", headers={"X-LPLOOKUP-API-Key": "k2"})
    assert r.json()["detail"]["error"] == "forbidden"
    assert "bob" in r.json()["detail"]["summary"]


def test_api_malformed_remote_payload_is_502(monkeypatch):
    class _Nameless:
        def batch_get_lifecycle_policy(self, identifiers, *, timeout_seconds=None):
            return BatchGetLifecyclePolicyOutput(details=({"type": "retention", "policy": {}},))

    r = _client(monkeypatch, _Nameless()).get("/lifecycle-policies/retention/lp1")
    assert r.status_code == 502
    assert r.json()["detail"]["error"] == "RemoteServiceError"


def test_access_log_carries_request_id_key_and_error_kind(monkeypatch, caplog):
    client = _client(monkeypatch, InMemoryLifecyclePolicyClient([]))
    caplog.set_level(logging.INFO, logger="lplookup.api.access")

    r = client.get("/lifecycle-policies/retention/missing", headers={"X-Request-ID": "req-42"})
    assert r.status_code == 404
    assert r.headers["x-request-id"] == "req-42"

    rec = [x for x in caplog.records if x.getMessage() == "api_request"][-1]
    assert rec.request_id == "req-42"
    assert rec.status_code == 404
    assert rec.policy_name == "missing"
    assert rec.policy_type == "retention"
    assert rec.lookup_error_kind == "NotFound"
    assert rec.actor_id == "anonymous"


def test_unusable_request_id_is_replaced(monkeypatch):
    client = _client(monkeypatch, InMemoryLifecyclePolicyClient([LP1]))

    r = client.get("/health", headers={"X-Request-ID": "x" * 200})
    rid = r.headers["x-request-id"]
    assert rid != "x" * 200
    assert len(rid) == 32


def test_non_positive_timeout_env_falls_back(monkeypatch):
    monkeypatch.setenv("LPLOOKUP_TIMEOUT_SEC", "-1")
    client = _client(monkeypatch, InMemoryLifecyclePolicyClient([LP1]))

    assert client.app.state.cfg.timeout_seconds is None
    assert client.get("/lifecycle-policies/retention/lp1").status_code == 200
