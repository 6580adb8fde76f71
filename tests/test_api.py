"""
tests/test_api.py
Endpoint tests for datagen.api using FastAPI's TestClient.

Each test builds its own application with injected settings and oracle,
so nothing touches a real language model.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from datagen.api import AI_FAILED_ADVISORY, AI_UNAVAILABLE_ADVISORY, create_app
from datagen.config import Settings
from datagen.generator import DataGenerator
from datagen.oracle import NullOracle, StructureReview


@pytest.fixture()
def client(small_settings: Settings) -> TestClient:
    """App with max_count 50, default_count 3 and no language model."""
    return TestClient(create_app(settings=small_settings, oracle=NullOracle()))


def _client_with(oracle: Any, settings: Settings) -> TestClient:
    return TestClient(create_app(settings=settings, oracle=oracle))


# ===========================================================================
# POST /api/data/generate
# ===========================================================================


class TestGenerateEndpoint:
    def test_json(self, client: TestClient, customer_dict: Dict[str, Any]) -> None:
        resp = client.post(
            "/api/data/generate", json={"structure": customer_dict, "count": 2, "format": "json"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["format"] == "json"
        assert [r["Id"] for r in body["data"]] == [1, 2]
        assert set(body["data"][0]) == {"Id", "Name", "Email"}

    def test_default_count_and_format(self, client: TestClient, customer_dict: Dict[str, Any]) -> None:
        resp = client.post("/api/data/generate", json={"structure": customer_dict})
        assert resp.status_code == 200
        body = resp.json()
        assert body["format"] == "json"
        assert len(body["data"]) == 3

    def test_csv_case_insensitive(self, client: TestClient, customer_dict: Dict[str, Any]) -> None:
        resp = client.post(
            "/api/data/generate", json={"structure": customer_dict, "count": 2, "format": "CSV"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["format"] == "csv"
        lines = body["data"].splitlines()
        assert lines[0] == '"Email","Id","Name"'
        assert len(lines) == 3

    def test_sql(self, client: TestClient, order_dict: Dict[str, Any]) -> None:
        resp = client.post(
            "/api/data/generate", json={"structure": order_dict, "count": 2, "format": "sql"}
        )
        assert resp.status_code == 200
        statements = resp.json()["data"].splitlines()
        assert len(statements) == 2
        assert statements[0].startswith("INSERT INTO Order (Customer, OrderId, Paid, Total) VALUES ('{")

    def test_seeded_requests_match(self, client: TestClient, order_dict: Dict[str, Any]) -> None:
        payload = {"structure": order_dict, "count": 3, "seed": 99}
        first = client.post("/api/data/generate", json=payload).json()
        second = client.post("/api/data/generate", json=payload).json()
        assert first == second

    def test_unknown_type_without_model(self, client: TestClient) -> None:
        structure = {"entityName": "T", "fields": [{"name": "Mood", "type": "feeling"}]}
        resp = client.post("/api/data/generate", json={"structure": structure, "count": 2})
        assert resp.status_code == 200
        assert all(isinstance(r["Mood"], str) for r in resp.json()["data"])

    @pytest.mark.parametrize("count", [0, -3])
    def test_count_too_small(self, client: TestClient, customer_dict: Dict[str, Any], count: int) -> None:
        resp = client.post("/api/data/generate", json={"structure": customer_dict, "count": count})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Count must be greater than 0"}

    def test_count_too_large(self, client: TestClient, customer_dict: Dict[str, Any]) -> None:
        resp = client.post("/api/data/generate", json={"structure": customer_dict, "count": 51})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Count exceeds maximum allowed (50)"}

    def test_invalid_structure(self, client: TestClient, customer_dict: Dict[str, Any]) -> None:
        broken = copy.deepcopy(customer_dict)
        broken["fields"].append({"name": "email", "type": "email"})
        broken["fields"].append({"name": "Address", "type": "object"})
        resp = client.post("/api/data/generate", json={"structure": broken, "count": 1})
        assert resp.status_code == 400
        assert resp.json() == {
            "error": "Invalid structure",
            "details": [
                "Duplicate field name 'email' at path: ",
                "Object field 'Address' must have nested fields defined",
            ],
        }

    def test_unsupported_format(self, client: TestClient, customer_dict: Dict[str, Any]) -> None:
        resp = client.post("/api/data/generate", json={"structure": customer_dict, "format": "xml"})
        assert resp.status_code == 422

    def test_internal_error_is_500(self, small_settings: Settings, customer_dict: Dict[str, Any]) -> None:
        class BrokenGenerator(DataGenerator):
            def generate(self, *args: Any, **kwargs: Any):
                raise RuntimeError("boom")

        app = create_app(settings=small_settings, oracle=NullOracle(), generator=BrokenGenerator())
        resp = TestClient(app).post("/api/data/generate", json={"structure": customer_dict, "count": 1})
        assert resp.status_code == 500
        assert resp.json() == {"error": "An error occurred while generating data"}


# ===========================================================================
# POST /api/data/validate-structure
# ===========================================================================


class TestValidateStructureEndpoint:
    def test_valid_without_model(self, client: TestClient, customer_dict: Dict[str, Any]) -> None:
        resp = client.post("/api/data/validate-structure", json={"structure": customer_dict})
        assert resp.status_code == 200
        assert resp.json() == {
            "isValid": True,
            "errors": [],
            "suggestions": [AI_UNAVAILABLE_ADVISORY],
        }

    def test_invalid(self, client: TestClient) -> None:
        resp = client.post(
            "/api/data/validate-structure", json={"structure": {"entityName": "", "fields": []}}
        )
        body = resp.json()
        assert resp.status_code == 200
        assert body["isValid"] is False
        assert body["errors"] == ["Entity name is required", "At least one field is required"]

    def test_model_suggestions(
        self, make_oracle, small_settings: Settings, customer_dict: Dict[str, Any]
    ) -> None:
        oracle = make_oracle(review=StructureReview(is_valid=True, suggestions=["add Phone"]))
        resp = _client_with(oracle, small_settings).post(
            "/api/data/validate-structure", json={"structure": customer_dict}
        )
        assert resp.json()["suggestions"] == ["add Phone"]

    def test_model_failure_advisory(
        self, make_oracle, small_settings: Settings, customer_dict: Dict[str, Any]
    ) -> None:
        oracle = make_oracle(review=None)
        resp = _client_with(oracle, small_settings).post(
            "/api/data/validate-structure", json={"structure": customer_dict}
        )
        assert resp.json()["isValid"] is True
        assert resp.json()["suggestions"] == [AI_FAILED_ADVISORY]


# ===========================================================================
# POST /api/data/generate-structure
# ===========================================================================


class TestGenerateStructureEndpoint:
    DRAFT = {
        "entityName": "Book",
        "fields": [
            {"name": "Isbn", "type": "string"},
            {"name": "Publisher", "type": "object", "fields": [{"name": "Name", "type": "company"}]},
        ],
    }

    def test_success(self, make_oracle, small_settings: Settings) -> None:
        oracle = make_oracle(structure=self.DRAFT)
        resp = _client_with(oracle, small_settings).post(
            "/api/data/generate-structure", json={"description": "A book with a publisher"}
        )
        assert resp.status_code == 200
        assert resp.json() == self.DRAFT

    @pytest.mark.parametrize("description", ["", "   "])
    def test_blank_description(self, client: TestClient, description: str) -> None:
        resp = client.post("/api/data/generate-structure", json={"description": description})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Description is required"}

    def test_description_too_long(self, make_oracle, small_settings: Settings) -> None:
        client = _client_with(make_oracle(structure=self.DRAFT), small_settings)
        resp = client.post("/api/data/generate-structure", json={"description": "x" * 1001})
        assert resp.status_code == 400

    def test_model_unavailable(self, client: TestClient) -> None:
        resp = client.post("/api/data/generate-structure", json={"description": "A book"})
        assert resp.status_code == 503

    def test_model_failure(self, make_oracle, small_settings: Settings) -> None:
        client = _client_with(make_oracle(structure=None), small_settings)
        resp = client.post("/api/data/generate-structure", json={"description": "A book"})
        assert resp.status_code == 500
        assert "error" in resp.json()


# ===========================================================================
# GET /api/data/supported-types
# ===========================================================================


class TestSupportedTypesEndpoint:
    def test_sorted_catalogue(self, client: TestClient) -> None:
        resp = client.get("/api/data/supported-types")
        assert resp.status_code == 200
        types = resp.json()["types"]
        assert types == sorted(types)
        for tag in ("email", "int", "object", "uuid", "zipcode"):
            assert tag in types


class TestLifespan:
    def test_oracle_closed_on_shutdown(self, make_oracle, small_settings: Settings) -> None:
        oracle = make_oracle()
        with TestClient(create_app(settings=small_settings, oracle=oracle)) as client:
            client.get("/api/data/supported-types")
        assert oracle.closed
