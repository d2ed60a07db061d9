from dataclasses import dataclass
from typing import Any, List, Optional

import pytest

from indexbridge.adapters.policy import (
    FieldRef,
    Predicate,
    build_delete_policy,
    current_object,
    should_delete,
)
from indexbridge.exceptions import ConfigurationError

# ---------- Helpers ----------


@dataclass
class Post:
    id: int
    archived: bool = False
    destroyed: bool = False


class LegacyPost:
    def __init__(self, delete: bool) -> None:
        self._delete = delete
        self.calls = 0

    def delete_from_index(self) -> bool:
        self.calls += 1
        return self._delete


class Record:
    def __init__(self, destroyed: bool) -> None:
        self._destroyed = destroyed

    def destroyed(self) -> bool:
        return self._destroyed

    def is_hidden(self) -> bool:
        return True


def collect_messages() -> tuple[List[str], Any]:
    messages: List[str] = []
    return messages, messages.append


# ---------- Probe chain ----------


def test_plain_object_defaults_to_index() -> None:
    assert should_delete(object()) is False


def test_destroyed_attribute_and_method() -> None:
    assert should_delete(Post(id=1, destroyed=True)) is True
    assert should_delete(Post(id=1, destroyed=False)) is False
    assert should_delete(Record(destroyed=True)) is True
    assert should_delete(Record(destroyed=False)) is False


@pytest.mark.parametrize(
    "obj, expected",
    [
        ({"id": 1, "_destroyed": True}, True),
        ({"id": 1, "_destroyed": 1}, True),
        ({"id": 1, "_destroyed": False}, False),
        ({"id": 1, "_destroyed": None}, False),
        ({"id": 1}, False),
    ],
)
def test_mapping_destroyed_key(obj: dict, expected: bool) -> None:
    assert should_delete(obj) is expected


def test_result_is_strict_bool() -> None:
    policy = build_delete_policy(lambda obj: "yes")
    assert should_delete({"id": 1}, policy) is True
    policy = build_delete_policy(lambda obj: [])
    assert should_delete({"id": 1}, policy) is False


def test_extra_probes_run_last_and_none_means_no_opinion() -> None:
    seen: List[Any] = []

    def probe(obj: Any) -> Optional[bool]:
        seen.append(obj)
        return None if obj == {"id": 1} else True

    assert should_delete({"id": 1}, probes=[probe]) is False
    assert should_delete({"id": 2}, probes=[probe]) is True
    # A destroyed mapping short-circuits before the extra probe
    assert should_delete({"id": 3, "_destroyed": True}, probes=[probe]) is True
    assert seen == [{"id": 1}, {"id": 2}]


# ---------- Legacy hook ----------


def test_legacy_hook_reports_deprecation_and_decides() -> None:
    messages, sink = collect_messages()
    obj = LegacyPost(delete=True)
    assert should_delete(obj, on_deprecation=sink) is True
    assert obj.calls == 1
    assert len(messages) == 1
    assert "deprecated" in messages[0]


def test_legacy_hook_true_skips_delete_if() -> None:
    calls: List[Any] = []

    def spy(obj: Any) -> bool:
        calls.append(obj)
        return False

    _, sink = collect_messages()
    assert should_delete(LegacyPost(delete=True), build_delete_policy(spy), on_deprecation=sink)
    assert calls == []


def test_legacy_hook_false_falls_through_to_delete_if() -> None:
    _, sink = collect_messages()
    policy = build_delete_policy(lambda obj: True)
    assert should_delete(LegacyPost(delete=False), policy, on_deprecation=sink) is True


def test_legacy_hook_default_channel_emits_deprecation_warning() -> None:
    with pytest.deprecated_call():
        assert should_delete(LegacyPost(delete=True)) is True


# ---------- delete_if ----------


def test_field_ref_attribute_and_method() -> None:
    assert should_delete(Post(id=1, archived=True), FieldRef("archived")) is True
    assert should_delete(Post(id=1, archived=False), FieldRef("archived")) is False
    assert should_delete(Record(destroyed=False), FieldRef("is_hidden")) is True


def test_field_ref_on_mapping_reads_key() -> None:
    policy = build_delete_policy("archived")
    assert should_delete({"id": 1, "archived": True}, policy) is True
    assert should_delete({"id": 1}, policy) is False


def test_field_ref_missing_attribute_propagates() -> None:
    with pytest.raises(AttributeError):
        should_delete(object(), FieldRef("archived"))


def test_unary_predicate_receives_object() -> None:
    received: List[Any] = []

    def predicate(obj: Any) -> bool:
        received.append(obj)
        return obj.id == 2

    policy = build_delete_policy(predicate)
    assert isinstance(policy, Predicate) and policy.unary
    assert should_delete(Post(id=1), policy) is False
    assert should_delete(Post(id=2), policy) is True
    assert [p.id for p in received] == [1, 2]


def test_nullary_predicate_reads_current_object() -> None:
    policy = build_delete_policy(lambda: current_object().archived)
    assert isinstance(policy, Predicate) and not policy.unary
    assert should_delete(Post(id=1, archived=True), policy) is True
    assert should_delete(Post(id=2, archived=False), policy) is False


def test_current_object_outside_predicate_raises() -> None:
    with pytest.raises(LookupError):
        current_object()


def test_current_object_unbound_after_predicate_error() -> None:
    def boom() -> bool:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        should_delete(Post(id=1), build_delete_policy(boom))
    with pytest.raises(LookupError):
        current_object()


def test_predicate_with_optional_second_argument_is_unary() -> None:
    policy = build_delete_policy(lambda obj, strict=False: obj.archived)
    assert isinstance(policy, Predicate) and policy.unary
    assert should_delete(Post(id=1, archived=True), policy) is True


def test_delete_if_falsy_falls_through_to_destroyed() -> None:
    policy = build_delete_policy("archived")
    assert should_delete(Post(id=1, archived=False, destroyed=True), policy) is True


# ---------- Policy building ----------


def test_build_delete_policy_kinds() -> None:
    assert build_delete_policy(None) is None
    assert build_delete_policy("archived") == FieldRef("archived")
    ref = FieldRef("archived")
    assert build_delete_policy(ref) is ref


@pytest.mark.parametrize("value", [42, 1.5, ["archived"], b"archived", ""])
def test_build_delete_policy_rejects_unsupported_values(value: Any) -> None:
    with pytest.raises(ConfigurationError):
        build_delete_policy(value)


def test_build_delete_policy_rejects_two_argument_predicate() -> None:
    with pytest.raises(ConfigurationError):
        build_delete_policy(lambda a, b: True)


def test_build_delete_policy_rejects_required_keyword_only() -> None:
    def predicate(obj: Any, *, strict: bool) -> bool:
        return strict

    with pytest.raises(ConfigurationError):
        build_delete_policy(predicate)
