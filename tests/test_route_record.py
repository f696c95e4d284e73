"""Tests for route record rule splitting."""

import pytest

from app.route_record import MalformedRuleError, RouteRecord, join_rule, split_rule


def test_split_rule():
    assert split_rule("consumer.host=10.0.0.1 => false") == ("consumer.host=10.0.0.1", "false")


@pytest.mark.parametrize(
    "rule",
    ["", "consumer.host=10.0.0.1", "a => b => c", "consumer.host=1=>false"],
)
def test_split_rule_rejects_other_shapes(rule):
    """Anything but exactly two ' => ' parts is malformed."""
    with pytest.raises(MalformedRuleError):
        split_rule(rule)


def test_malformed_rule_error_names_route():
    with pytest.raises(MalformedRuleError) as exc:
        split_rule("garbage", route_id=7)
    assert exc.value.route_id == 7
    assert "route 7" in str(exc.value)


def test_join_rule():
    assert join_rule("consumer.host!=10.0.0.1", "false") == "consumer.host!=10.0.0.1 => false"


def test_record_split_and_join():
    """split() fills the transient parts and join() folds them back."""
    record = RouteRecord(service="com.example.DemoService", rule="host=1 => false", id=3)
    record.split()
    assert (record.match_rule, record.filter_rule) == ("host=1", "false")

    record.match_rule = "host=1,2"
    record.join()
    assert record.rule == "host=1,2 => false"


def test_new_force_route():
    record = RouteRecord.new_force_route("com.example.DemoService", "demo blackwhitelist", "false")
    assert record.id is None
    assert record.force is True
    assert record.enabled is True
    assert record.filter_rule == "false"
    assert record.match_rule == ""
    assert record.name == "demo blackwhitelist"
