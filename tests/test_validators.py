"""
tests/test_validators.py
Unit tests for datagen.validators.

Tests cover:
- Entity name / field list presence
- Field name and type presence, with the offending path in the message
- Case-insensitive duplicate detection among siblings
- Objects without children, recursion into nested objects
- Unknown types reported as info only
- Count range and description checks, raising helpers
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from datagen.models import StructureDefinition
from datagen.validators import (
    CountOutOfRangeError,
    StructureValidationError,
    ValidationError,
    ValidationResult,
    ensure_valid_count,
    ensure_valid_structure,
    validate_count,
    validate_description,
    validate_fields,
    validate_structure,
)


def _build(raw: Dict[str, Any]) -> StructureDefinition:
    return StructureDefinition.model_validate(raw)


# ===========================================================================
# ValidationResult accumulator
# ===========================================================================


class TestValidationResult:
    def test_empty_result_is_valid(self) -> None:
        result = ValidationResult()
        assert result.is_valid
        assert bool(result)
        assert len(result) == 0

    def test_levels(self) -> None:
        result = ValidationResult()
        result.add_error("E1", "broken")
        result.add_warning("W1", "odd")
        result.add_info("I1", "fyi")
        assert not result.is_valid
        assert result.error_count == 1
        assert result.warning_count == 1
        assert len(result.all_items) == 3
        assert result.codes() == ["E1", "W1", "I1"]
        assert result.error_messages == ["broken"]

    def test_merge_keeps_order(self) -> None:
        first, second = ValidationResult(), ValidationResult()
        first.add_error("A", "a")
        second.add_error("B", "b")
        first.merge(second)
        assert first.error_messages == ["a", "b"]

    def test_error_descriptor(self) -> None:
        item = ValidationError("error", "X", "message", {"path": "a.b"})
        assert item.is_error
        assert str(item) == "message"
        assert item.to_dict()["context"] == {"path": "a.b"}


# ===========================================================================
# Structure validation
# ===========================================================================


class TestValidateStructure:
    def test_valid_structure(self, customer_structure: StructureDefinition) -> None:
        result = validate_structure(customer_structure)
        assert result.is_valid, result.error_messages

    def test_nested_structure(self, order_structure: StructureDefinition) -> None:
        assert validate_structure(order_structure).is_valid

    def test_missing_entity_name(self, customer_dict: Dict[str, Any]) -> None:
        customer_dict["entityName"] = "   "
        result = validate_structure(_build(customer_dict))
        assert result.error_messages == ["Entity name is required"]

    def test_no_fields(self) -> None:
        result = validate_structure(_build({"entityName": "Empty", "fields": []}))
        assert result.error_messages == ["At least one field is required"]

    def test_null_fields(self) -> None:
        result = validate_structure(_build({"entityName": "Empty", "fields": None}))
        assert "At least one field is required" in result.error_messages

    def test_missing_field_name(self) -> None:
        raw = {"entityName": "T", "fields": [{"name": "", "type": "int"}]}
        result = validate_structure(_build(raw))
        assert result.error_messages == ["Field name is required at path: "]

    def test_missing_field_type(self) -> None:
        raw = {"entityName": "T", "fields": [{"name": "Total", "type": ""}]}
        result = validate_structure(_build(raw))
        assert result.error_messages == ["Field type is required for field: Total"]

    def test_duplicate_names_case_insensitive(self) -> None:
        raw = {
            "entityName": "T",
            "fields": [
                {"name": "Email", "type": "email"},
                {"name": "email", "type": "email"},
            ],
        }
        result = validate_structure(_build(raw))
        assert result.error_messages == ["Duplicate field name 'email' at path: "]

    def test_same_name_in_different_objects_is_fine(self) -> None:
        raw = {
            "entityName": "T",
            "fields": [
                {"name": "Name", "type": "fullname"},
                {"name": "Company", "type": "object", "fields": [{"name": "Name", "type": "company"}]},
            ],
        }
        assert validate_structure(_build(raw)).is_valid

    def test_object_without_children(self) -> None:
        raw = {"entityName": "T", "fields": [{"name": "Address", "type": "object"}]}
        result = validate_structure(_build(raw))
        assert result.error_messages == [
            "Object field 'Address' must have nested fields defined"
        ]

    def test_object_with_empty_children(self) -> None:
        raw = {"entityName": "T", "fields": [{"name": "Address", "type": "Object", "fields": []}]}
        result = validate_structure(_build(raw))
        assert result.codes() == ["OBJECT_WITHOUT_FIELDS"]

    def test_nested_errors_carry_path(self, order_dict: Dict[str, Any]) -> None:
        raw = copy.deepcopy(order_dict)
        address = raw["fields"][1]["fields"][2]
        address["fields"].append({"name": "city", "type": "city"})
        address["fields"].append({"name": "Region", "type": ""})
        result = validate_structure(_build(raw))
        assert result.error_messages == [
            "Duplicate field name 'city' at path: Customer.Address",
            "Field type is required for field: Customer.Address.Region",
        ]

    def test_collects_every_violation(self) -> None:
        raw = {
            "entityName": "",
            "fields": [
                {"name": "", "type": "int"},
                {"name": "Address", "type": "object"},
            ],
        }
        result = validate_structure(_build(raw))
        assert result.error_count == 3

    def test_unknown_type_is_info_only(self) -> None:
        raw = {"entityName": "T", "fields": [{"name": "Mood", "type": "feeling"}]}
        result = validate_structure(_build(raw))
        assert result.is_valid
        assert result.codes() == ["UNKNOWN_FIELD_TYPE"]

    def test_validate_fields_with_path(self) -> None:
        fields = _build(
            {"entityName": "T", "fields": [{"name": "Zip", "type": ""}]}
        ).fields
        result = validate_fields(fields, "Customer.Address")
        assert result.error_messages == [
            "Field type is required for field: Customer.Address.Zip"
        ]


# ===========================================================================
# Count / description
# ===========================================================================


class TestValidateCount:
    @pytest.mark.parametrize("count", [1, 50, 10000])
    def test_in_range(self, count: int) -> None:
        assert validate_count(count, 10000).is_valid

    @pytest.mark.parametrize("count", [0, -5])
    def test_too_small(self, count: int) -> None:
        assert validate_count(count, 10000).error_messages == [
            "Count must be greater than 0"
        ]

    def test_too_large(self) -> None:
        assert validate_count(10001, 10000).error_messages == [
            "Count exceeds maximum allowed (10000)"
        ]

    @pytest.mark.parametrize("count", [True, 2.5, "10", None])
    def test_not_an_integer(self, count: Any) -> None:
        assert validate_count(count, 10000).codes() == ["COUNT_NOT_INTEGER"]

    def test_ensure_raises(self) -> None:
        with pytest.raises(CountOutOfRangeError, match="greater than 0") as info:
            ensure_valid_count(0, 100)
        assert info.value.count == 0
        assert ensure_valid_count(5, 100) == 5


class TestValidateDescription:
    def test_valid(self) -> None:
        assert validate_description("A blog post with author and tags").is_valid

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_blank(self, text: Any) -> None:
        assert validate_description(text).error_messages == ["Description is required"]

    def test_limit_is_inclusive(self) -> None:
        assert validate_description("x" * 1000).is_valid
        assert validate_description("x" * 1001).error_messages == [
            "Description must not exceed 1000 characters"
        ]


class TestEnsureValidStructure:
    def test_raises_with_all_errors(self) -> None:
        raw = {"entityName": "", "fields": []}
        with pytest.raises(StructureValidationError) as info:
            ensure_valid_structure(_build(raw))
        assert info.value.errors == [
            "Entity name is required",
            "At least one field is required",
        ]
        assert not info.value.result.is_valid
        assert isinstance(info.value, ValueError)

    def test_returns_result_when_valid(self, customer_structure: StructureDefinition) -> None:
        assert ensure_valid_structure(customer_structure).is_valid
