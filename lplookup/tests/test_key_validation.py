import pytest

from lplookup.core.lookup import (
    KeyValidationError,
    LifecyclePolicyType,
    ViolationKind,
    validate_lookup_key,
)


@pytest.mark.parametrize("length", [0, 1, 2, 33, 40, 200])
def test_name_length_out_of_range_is_rejected(length):
    result = validate_lookup_key("n" * length, "retention")

    assert result.ok is False
    assert result.key is None
    assert [v.kind for v in result.violations] == [ViolationKind.LENGTH_OUT_OF_RANGE]
    assert result.violations[0].field == "name"


@pytest.mark.parametrize("length", [3, 4, 16, 31, 32])
def test_name_length_in_range_passes(length):
    result = validate_lookup_key("n" * length, "retention")

    assert result.ok is True
    assert result.key is not None
    assert result.key.name == "n" * length
    assert result.violations == ()


def test_name_length_counts_characters_not_bytes():
    # 3 characters, 9 UTF-8 bytes
    result = validate_lookup_key("ééé", "retention")
    assert result.ok is True


@pytest.mark.parametrize("raw_type", ["DELETION", "", "retain", "retention ", None, 1])
def test_unknown_type_is_rejected(raw_type):
    result = validate_lookup_key("my-policy", raw_type)

    assert result.ok is False
    assert [v.kind for v in result.violations] == [ViolationKind.UNKNOWN_ENUM_VALUE]
    assert result.violations[0].field == "type"


@pytest.mark.parametrize("member", list(LifecyclePolicyType))
def test_every_enum_member_passes(member):
    for raw in (member.value, member.value.upper(), member):
        result = validate_lookup_key("my-policy", raw)
        assert result.ok is True
        assert result.key.type is member


def test_all_violations_are_collected():
    result = validate_lookup_key("ab", "DELETION")

    kinds = {v.field: v.kind for v in result.violations}
    assert kinds == {
        "name": ViolationKind.LENGTH_OUT_OF_RANGE,
        "type": ViolationKind.UNKNOWN_ENUM_VALUE,
    }


def test_non_string_name_is_a_violation_not_a_crash():
    result = validate_lookup_key(None, "retention")
    assert result.ok is False
    assert result.violations[0].kind == ViolationKind.LENGTH_OUT_OF_RANGE


def test_raise_for_violations_names_fields_and_action():
    result = validate_lookup_key("ab", "DELETION")

    with pytest.raises(KeyValidationError) as ei:
        result.raise_for_violations()

    err = ei.value
    assert len(err.violations) == 2
    msg = str(err)
    assert msg.startswith("reading Lifecycle Policy")
    assert '"ab"' in msg
    assert "name length" in msg
    assert "type must be one of" in msg
    assert err.diagnostic()["summary"] == msg


def test_raise_for_violations_returns_key_when_valid():
    key = validate_lookup_key("lp1", "RETENTION").raise_for_violations()
    assert key.name == "lp1"
    assert key.type is LifecyclePolicyType.RETENTION
