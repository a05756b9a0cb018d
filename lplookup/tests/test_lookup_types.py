import pytest

from lplookup.core.lookup import LifecyclePolicyType, LookupKey, PolicyRecord


def test_policy_type_is_enum_and_parses_case_insensitively():
    assert LifecyclePolicyType("retention") == LifecyclePolicyType.RETENTION
    assert LifecyclePolicyType.parse("RETENTION") is LifecyclePolicyType.RETENTION
    assert LifecyclePolicyType.parse("Retention") is LifecyclePolicyType.RETENTION
    assert LifecyclePolicyType.parse(LifecyclePolicyType.RETENTION) is LifecyclePolicyType.RETENTION

    assert LifecyclePolicyType.parse("DELETION") is None
    assert LifecyclePolicyType.parse(" retention") is None
    assert LifecyclePolicyType.parse(None) is None
    assert LifecyclePolicyType.parse(7) is None

    with pytest.raises(ValueError):
        LifecyclePolicyType("RETENTON")


def test_lookup_key_is_immutable_and_enforces_invariants():
    key = LookupKey(name="my-policy", type=LifecyclePolicyType.RETENTION)
    assert key.to_identifier() == {"name": "my-policy", "type": "retention"}
    assert key.display_id() == '"my-policy", retention'

    with pytest.raises(Exception):
        key.name = "other"

    with pytest.raises(ValueError):
        LookupKey(name="ab", type=LifecyclePolicyType.RETENTION)
    with pytest.raises(ValueError):
        LookupKey(name="x" * 33, type=LifecyclePolicyType.RETENTION)
    with pytest.raises(TypeError):
        LookupKey(name="my-policy", type="retention")


def test_policy_record_to_dict_mirrors_identifier_as_id():
    record = PolicyRecord(
        identifier="lp1",
        name="lp1",
        type="RETENTION",
        policy_document="{}",
    )
    d = record.to_dict()
    assert d["id"] == "lp1"
    assert d["identifier"] == d["name"] == "lp1"
    assert d["description"] is None
