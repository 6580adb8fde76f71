"""
tests/conftest.py
Shared fixtures for the datagen test suite.

Structures are built from plain dicts, exactly as they arrive over HTTP or
from a structure file.  The language model is replaced by small in-process
oracles; real file I/O happens inside pytest's ``tmp_path``.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict, List, Optional, Tuple

import pytest
import yaml

from datagen.config import Settings
from datagen.generator import DataGenerator
from datagen.models import StructureDefinition
from datagen.oracle import OracleResult, StructureReview


# ---------------------------------------------------------------------------
# Raw structure fixtures
# ---------------------------------------------------------------------------

CUSTOMER_DICT: Dict[str, Any] = {
    "entityName": "Customer",
    "fields": [
        {"name": "Id", "type": "int", "constraints": {"autoIncrement": True}},
        {"name": "Name", "type": "fullname"},
        {"name": "Email", "type": "email"},
    ],
}

ORDER_DICT: Dict[str, Any] = {
    "entityName": "Order",
    "fields": [
        {"name": "OrderId", "type": "int", "constraints": {"autoIncrement": True}},
        {
            "name": "Customer",
            "type": "object",
            "fields": [
                {"name": "CustomerId", "type": "int", "constraints": {"autoIncrement": True}},
                {"name": "Email", "type": "email"},
                {
                    "name": "Address",
                    "type": "object",
                    "fields": [
                        {"name": "City", "type": "city"},
                        {"name": "Zip", "type": "zipcode"},
                    ],
                },
            ],
        },
        {"name": "Total", "type": "decimal"},
        {"name": "Paid", "type": "boolean"},
    ],
}


@pytest.fixture()
def customer_dict() -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(CUSTOMER_DICT)


@pytest.fixture()
def customer_structure(customer_dict: Dict[str, Any]) -> StructureDefinition:
    return StructureDefinition.model_validate(customer_dict)


@pytest.fixture()
def order_dict() -> Dict[str, Any]:
    return copy.deepcopy(ORDER_DICT)


@pytest.fixture()
def order_structure(order_dict: Dict[str, Any]) -> StructureDefinition:
    return StructureDefinition.model_validate(order_dict)


@pytest.fixture()
def customer_json_path(customer_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the customer structure to a temporary JSON file and return its path."""
    path = tmp_path / "customer.json"
    path.write_text(json.dumps(customer_dict), encoding="utf-8")
    return path


@pytest.fixture()
def order_yaml_path(order_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the order structure, wrapped in a request document, to YAML."""
    path = tmp_path / "order.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump({"structure": order_dict}, fh, default_flow_style=False)
    return path


# ---------------------------------------------------------------------------
# Oracle doubles
# ---------------------------------------------------------------------------


class ScriptedOracle:
    """
    In-process oracle answering from fixed tables.

    ``suggestions`` maps a field name to the tag returned for it; names not in
    the table get a failure result.  Every call is recorded.
    """

    model_name: str = "scripted"

    def __init__(
        self,
        suggestions: Optional[Dict[str, str]] = None,
        *,
        available: bool = True,
        review: Optional[StructureReview] = None,
        structure: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.suggestions: Dict[str, str] = suggestions or {}
        self.available: bool = available
        self.review: Optional[StructureReview] = review
        self.structure: Optional[Dict[str, Any]] = structure
        self.calls: List[Tuple[str, str]] = []
        self.closed: bool = False

    def is_available(self) -> bool:
        return self.available

    def suggest_type(self, field_name: str, type_hint: str) -> OracleResult[str]:
        self.calls.append((field_name, type_hint))
        if field_name in self.suggestions:
            return OracleResult.success(self.suggestions[field_name])
        return OracleResult.failure(f"no suggestion for {field_name}")

    def validate_structure(
        self, structure: StructureDefinition
    ) -> OracleResult[StructureReview]:
        if self.review is None:
            return OracleResult.failure("review failed")
        return OracleResult.success(self.review)

    def generate_structure(self, description: str) -> OracleResult[StructureDefinition]:
        if self.structure is None:
            return OracleResult.failure("model reply is not JSON")
        return OracleResult.success(StructureDefinition.model_validate(self.structure))

    def close(self) -> None:
        self.closed = True


class ExplodingOracle(ScriptedOracle):
    """Oracle whose suggestion call raises instead of returning a result."""

    def suggest_type(self, field_name: str, type_hint: str) -> OracleResult[str]:
        self.calls.append((field_name, type_hint))
        raise RuntimeError("connection reset by peer")


@pytest.fixture()
def scripted_oracle() -> ScriptedOracle:
    return ScriptedOracle()


# ---------------------------------------------------------------------------
# Generator / settings fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def generator() -> DataGenerator:
    """Generator without a language model."""
    return DataGenerator()


@pytest.fixture()
def settings() -> Settings:
    """Defaults only: no Ollama, default_count 10, max_count 10000."""
    return Settings()


@pytest.fixture()
def small_settings() -> Settings:
    """Settings with a low record limit for range checks."""
    return Settings(data_generation={"default_count": 3, "max_count": 50})


@pytest.fixture()
def make_oracle():
    """Factory for ``ScriptedOracle`` instances with per-test answers."""
    return ScriptedOracle


@pytest.fixture()
def exploding_oracle() -> ExplodingOracle:
    return ExplodingOracle()
