import logging

import pytest

from lplookup.client.errors import TransportFailure
from lplookup.client.memory import InMemoryLifecyclePolicyClient
from lplookup.core.lookup import (
    KeyValidationError,
    LifecyclePolicyDataSource,
    PolicyNotFoundError,
    PolicyResolver,
    TransportError,
)


def _source(details=()):
    client = InMemoryLifecyclePolicyClient(details)
    return client, LifecyclePolicyDataSource(PolicyResolver(client))


def test_read_returns_normalized_record():
    _, source = _source(
        [
            {
                "name": "lp1",
                "type": "RETENTION",
                "createdDate": 1700000000000,
                "lastModifiedDate": 1700000000000,
                "policy": {"Rules": []},
                "policyVersion": "v1",
            }
        ]
    )
    record = source.read("lp1", "RETENTION")
    assert record.identifier == record.name == "lp1"
    assert record.policy_document == '{"Rules":[]}'


def test_invalid_key_never_reaches_the_network(caplog):
    client, source = _source()

    with caplog.at_level(logging.WARNING, logger="lplookup.data_source"):
        with pytest.raises(KeyValidationError) as ei:
            source.read("ab", "DELETION")

    assert client.calls == []
    assert {v.field for v in ei.value.violations} == {"name", "type"}
    assert any(r.getMessage() == "lifecycle_policy_invalid_key" for r in caplog.records)


def test_resolve_failure_is_logged_and_reraised(caplog):
    _, source = _source()

    with caplog.at_level(logging.WARNING, logger="lplookup.data_source"):
        with pytest.raises(PolicyNotFoundError) as ei:
            source.read("my-policy", "retention")

    diag = ei.value.diagnostic()
    assert diag["summary"].startswith('reading Lifecycle Policy ("my-policy", retention)')
    assert "not found" in diag["detail"]

    rec = next(r for r in caplog.records if r.getMessage() == "lifecycle_policy_read_failed")
    assert rec.policy_name == "my-policy"
    assert rec.error_kind == "NotFound"


def test_transport_failure_surfaces_as_transport_error():
    class _Down:
        def batch_get_lifecycle_policy(self, identifiers, *, timeout_seconds=None):
            raise TransportFailure("network error: connection refused")

    source = LifecyclePolicyDataSource(PolicyResolver(_Down()))
    with pytest.raises(TransportError) as ei:
        source.read("lp1", "retention", timeout_seconds=1.0)
    assert "connection refused" in str(ei.value)
