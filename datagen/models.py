# File: datagen/models.py
"""
NexaFlow DataGen - Core Data Models
====================================
Pydantic V2 models describing a user-supplied structure definition and the
request / response bodies exchanged at the HTTP boundary.  These models are
the single source of truth for the entire pipeline:
Structure Parsing → Validation → Value Generation → Serialization.

The structure models are deliberately lax (empty names and types are
accepted) so that ``datagen.validators`` can report *every* violation as a
human-readable message instead of failing on the first one.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.models")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

OBJECT_TYPE: str = "object"
AUTO_INCREMENT_KEY: str = "autoIncrement"

_TRUTHY_STRINGS = frozenset({"true", "1", "yes"})

# A generated record: field name → primitive or nested record.
Record = Dict[str, Any]


class OutputFormat(str, Enum):
    """Encodings a generated record set can be rendered into."""

    JSON = "json"
    CSV = "csv"
    SQL = "sql"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_STRUCTURE_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)

_DTO_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=False,
    extra="ignore",
)


def is_truthy(value: Any) -> bool:
    """Interpret a loosely-typed constraint value as a boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False


# ---------------------------------------------------------------------------
# Structure definition
# ---------------------------------------------------------------------------


class FieldDefinition(BaseModel):
    """
    One node of a structure tree.

    ``type`` is a case-insensitive semantic tag such as ``"email"`` or
    ``"uuid"``.  A field of type ``"object"`` carries its children in
    ``fields``; any field may carry free-form ``constraints`` of which only
    ``autoIncrement`` is interpreted.
    """

    model_config = _STRUCTURE_CONFIG

    name: str = Field(default="", description="Field name.")
    type: str = Field(default="", description="Semantic type tag.")
    constraints: Optional[Dict[str, Any]] = Field(
        default=None, description="Free-form constraints (e.g. autoIncrement)."
    )
    fields: Optional[List["FieldDefinition"]] = Field(
        default=None, description="Child fields (type 'object' only)."
    )

    @field_validator("name", "type", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def normalized_type(self) -> str:
        return self.type.strip().lower()

    @property
    def is_object(self) -> bool:
        return self.normalized_type == OBJECT_TYPE

    @property
    def children(self) -> List["FieldDefinition"]:
        return list(self.fields or [])

    @property
    def is_auto_increment(self) -> bool:
        if not self.constraints:
            return False
        return is_truthy(self.constraints.get(AUTO_INCREMENT_KEY))

    def with_type(self, type_tag: str) -> "FieldDefinition":
        """Copy of this field carrying another type (same name and constraints, no children)."""
        return FieldDefinition(
            name=self.name,
            type=type_tag,
            constraints=self.constraints,
        )

    def __repr__(self) -> str:
        suffix: str = f" [{len(self.children)} children]" if self.fields else ""
        return f"<Field {self.name}: {self.type}{suffix}>"


class StructureDefinition(BaseModel):
    """
    Root of a structure tree: an entity name plus its ordered fields.

    Built once per request and never mutated during generation.
    """

    model_config = _STRUCTURE_CONFIG

    entity_name: str = Field(
        default="", alias="entityName", description="Entity / table name."
    )
    fields: List[FieldDefinition] = Field(
        default_factory=list, description="Top-level fields in declaration order."
    )

    @field_validator("entity_name", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("fields", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def field_count(self) -> int:
        """Total number of field nodes in the tree."""

        def _count(nodes: List[FieldDefinition]) -> int:
            return sum(1 + _count(n.children) for n in nodes)

        return _count(self.fields)

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict using the wire names (``entityName``)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def __repr__(self) -> str:
        return f"<Structure {self.entity_name} ({len(self.fields)} fields)>"


# ---------------------------------------------------------------------------
# HTTP request / response bodies
# ---------------------------------------------------------------------------


class GenerateDataRequest(BaseModel):
    """Body of ``POST /api/data/generate``."""

    model_config = _DTO_CONFIG

    structure: StructureDefinition = Field(default_factory=StructureDefinition)
    count: Optional[int] = Field(
        default=None, description="Number of records (server default when omitted)."
    )
    format: OutputFormat = Field(default=OutputFormat.JSON)
    seed: Optional[int] = Field(
        default=None, description="Seed for a reproducible record set."
    )

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, v: Any) -> Any:
        if v is None:
            return OutputFormat.JSON
        if isinstance(v, str):
            return v.strip().lower()
        return v


class GenerateDataResponse(BaseModel):
    """Encoded payload tagged with the chosen format."""

    model_config = _DTO_CONFIG

    format: OutputFormat
    data: Any


class ValidateStructureRequest(BaseModel):
    """Body of ``POST /api/data/validate-structure``."""

    model_config = _DTO_CONFIG

    structure: StructureDefinition = Field(default_factory=StructureDefinition)


class ValidationResponse(BaseModel):
    """Structural verdict plus optional language-model advice."""

    model_config = _DTO_CONFIG

    is_valid: bool = Field(..., alias="isValid")
    errors: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class GenerateStructureRequest(BaseModel):
    """Body of ``POST /api/data/generate-structure``."""

    model_config = _DTO_CONFIG

    description: str = Field(default="")


class SupportedTypesResponse(BaseModel):
    model_config = _DTO_CONFIG

    types: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OBJECT_TYPE",
    "AUTO_INCREMENT_KEY",
    "Record",
    "OutputFormat",
    "is_truthy",
    "FieldDefinition",
    "StructureDefinition",
    "GenerateDataRequest",
    "GenerateDataResponse",
    "ValidateStructureRequest",
    "ValidationResponse",
    "GenerateStructureRequest",
    "SupportedTypesResponse",
]

logger.debug("datagen.models loaded - %d public symbols.", len(__all__))
