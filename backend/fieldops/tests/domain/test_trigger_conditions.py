"""Tests for automation trigger condition predicates."""

import pytest

from fieldops.domain.scheduling.services.trigger_conditions import (
    InvalidConditionError,
    evaluate_conditions,
    resolve_path,
    validate_conditions,
)
from fieldops.domain.scheduling.value_objects import JobStatus

CONTEXT = {
    "job": {
        "status": "completed",
        "priority": "high",
        "completion_percentage": 80,
        "required_skills": ["glazing", "install"],
        "title": "Replace storefront glass",
    },
    "new_status": JobStatus.COMPLETED,
    "previous_status": "in_progress",
}


class TestEvaluate:
    @pytest.mark.parametrize("conditions", [None, {}])
    def test_empty_conditions_always_match(self, conditions):
        assert evaluate_conditions(conditions, CONTEXT)

    def test_shorthand_equality(self):
        assert evaluate_conditions({"new_status": "completed"}, CONTEXT)
        assert evaluate_conditions({"job.priority": "high", "new_status": "completed"}, CONTEXT)
        assert not evaluate_conditions({"job.priority": "low"}, CONTEXT)

    def test_enum_values_compare_by_value(self):
        assert resolve_path(CONTEXT, "new_status") == "completed"

    @pytest.mark.parametrize(
        "leaf, expected",
        [
            ({"field": "job.completion_percentage", "op": "gte", "value": 80}, True),
            ({"field": "job.completion_percentage", "op": "gt", "value": 80}, False),
            ({"field": "job.completion_percentage", "op": "lt", "value": 100}, True),
            ({"field": "job.completion_percentage", "op": "lte", "value": 50}, False),
            ({"field": "job.priority", "op": "in", "value": ["high", "urgent"]}, True),
            ({"field": "job.priority", "op": "not_in", "value": ["high"]}, False),
            ({"field": "job.required_skills", "op": "contains", "value": "glazing"}, True),
            ({"field": "job.title", "op": "contains", "value": "storefront"}, True),
            ({"field": "job.priority", "op": "ne", "value": "low"}, True),
            ({"field": "job.missing", "op": "exists", "value": False}, True),
            ({"field": "job.status", "op": "exists"}, True),
        ],
    )
    def test_leaf_operators(self, leaf, expected):
        assert evaluate_conditions(leaf, CONTEXT) is expected

    def test_missing_field_never_satisfies_ordering(self):
        assert not evaluate_conditions({"field": "nope", "op": "gt", "value": 0}, CONTEXT)
        assert not evaluate_conditions({"field": "nope", "op": "eq", "value": None}, CONTEXT)
        assert evaluate_conditions({"field": "nope", "op": "ne", "value": 1}, CONTEXT)

    def test_incomparable_types_do_not_raise(self):
        assert not evaluate_conditions({"field": "job.title", "op": "gt", "value": 5}, CONTEXT)

    def test_composites(self):
        conditions = {
            "all": [
                {"new_status": "completed"},
                {
                    "any": [
                        {"field": "job.priority", "op": "eq", "value": "urgent"},
                        {"field": "job.completion_percentage", "op": "gte", "value": 75},
                    ]
                },
                {"not": {"previous_status": "on_hold"}},
            ]
        }
        validate_conditions(conditions)
        assert evaluate_conditions(conditions, CONTEXT)
        assert not evaluate_conditions({"not": conditions}, CONTEXT)


class TestValidate:
    @pytest.mark.parametrize(
        "conditions",
        [
            ["new_status"],
            {"all": {"new_status": "completed"}},
            {"all": [], "any": []},
            {"not": []},
            {"field": "x", "op": "between", "value": 1},
            {"field": "x", "op": "gt"},
            {"field": "x", "op": "in", "value": "abc"},
            {"op": "eq", "value": 1},
            {"field": "x", "value": 1, "extra": True},
        ],
    )
    def test_rejects_malformed(self, conditions):
        with pytest.raises(InvalidConditionError):
            validate_conditions(conditions)

    @pytest.mark.parametrize(
        "conditions",
        [
            None,
            {},
            {"new_status": "completed"},
            {"field": "job.status", "op": "exists"},
            {"any": [{"field": "job.priority", "op": "in", "value": ["high"]}]},
        ],
    )
    def test_accepts_well_formed(self, conditions):
        validate_conditions(conditions)
