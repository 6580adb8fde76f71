# File: datagen/validators.py
"""
NexaFlow DataGen - Structure & Request Validators
==================================================
A **pure-function validation pipeline** over the models in
``datagen.models``.

The structure models accept almost anything so that this module can report
every violation at once: missing entity name, missing or duplicate field
names (case-insensitive, per sibling list), missing types and ``object``
fields without children.  Unknown type tags are *not* errors; they are
recorded as ``info`` items because generation resolves them through the
suggestion oracle.

Usage by downstream modules:
    from datagen.validators import validate_structure
    result = validate_structure(structure)
    if not result:
        raise StructureValidationError(result)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set

from datagen.models import FieldDefinition, StructureDefinition
from datagen.registry import TypeRegistry, default_registry

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.validators")

MAX_DESCRIPTION_LENGTH: int = 1000


# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight error descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` items in the order they were found."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def error_messages(self) -> List[str]:
        return [e.message for e in self._items if e.is_error]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "✗",
                "warning": "⚠",
                "info": "ℹ",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Exceptions raised by the generation pipeline
# ---------------------------------------------------------------------------


class StructureValidationError(ValueError):
    """A structure failed validation; carries every violation."""

    def __init__(self, result: ValidationResult) -> None:
        self.result: ValidationResult = result
        self.errors: List[str] = result.error_messages
        super().__init__(
            f"Invalid structure ({len(self.errors)} error(s)): " + "; ".join(self.errors)
        )


class CountOutOfRangeError(ValueError):
    """Requested record count is not within ``1..max_count``."""

    def __init__(self, message: str, count: Any = None) -> None:
        self.count: Any = count
        super().__init__(message)


# ---------------------------------------------------------------------------
# Individual validation functions
# ---------------------------------------------------------------------------


def validate_entity_name(structure: StructureDefinition) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if not structure.entity_name or not structure.entity_name.strip():
        result.add_error("ENTITY_NAME_REQUIRED", "Entity name is required")
    return result


def validate_fields(
    fields: List[FieldDefinition],
    path: str = "",
    registry: Optional[TypeRegistry] = None,
) -> ValidationResult:
    """
    Validate one sibling list and recurse into ``object`` children.

    Sibling names are compared case-insensitively, so ``Email`` and
    ``email`` under the same parent collide.  Structures are trees, so the
    recursion always terminates.
    """
    registry = registry or default_registry()
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for field_def in fields:
        name: str = (field_def.name or "").strip()
        field_path: str = f"{path}.{field_def.name}" if path else field_def.name

        if not name:
            result.add_error(
                "FIELD_NAME_REQUIRED",
                f"Field name is required at path: {path}",
                {"path": path},
            )
            continue

        key: str = name.lower()
        if key in seen:
            result.add_error(
                "DUPLICATE_FIELD_NAME",
                f"Duplicate field name '{field_def.name}' at path: {path}",
                {"path": path, "field": field_def.name},
            )
        else:
            seen.add(key)

        if not field_def.type or not field_def.type.strip():
            result.add_error(
                "FIELD_TYPE_REQUIRED",
                f"Field type is required for field: {field_path}",
                {"path": field_path},
            )
        elif not registry.is_supported(field_def.type):
            logger.warning(
                "Unknown field type '%s' for field: %s. Will attempt AI suggestion.",
                field_def.type,
                field_path,
            )
            result.add_info(
                "UNKNOWN_FIELD_TYPE",
                f"Field '{field_path}' has unknown type '{field_def.type}'; "
                f"a suggested type or a generic value will be used.",
                {"path": field_path, "type": field_def.type},
            )

        if field_def.is_object:
            if not field_def.children:
                result.add_error(
                    "OBJECT_WITHOUT_FIELDS",
                    f"Object field '{field_path}' must have nested fields defined",
                    {"path": field_path},
                )
            else:
                result.merge(validate_fields(field_def.children, field_path, registry))

    return result


def validate_structure(
    structure: StructureDefinition,
    registry: Optional[TypeRegistry] = None,
) -> ValidationResult:
    """**Master structural validation entry point.**"""
    result: ValidationResult = ValidationResult()
    result.merge(validate_entity_name(structure))

    if not structure.fields:
        result.add_error("FIELDS_REQUIRED", "At least one field is required")
    else:
        result.merge(validate_fields(structure.fields, "", registry))

    if result.has_errors:
        logger.warning(
            "Structure validation failed for entity: %s. Errors: %d",
            structure.entity_name,
            result.error_count,
        )
    else:
        logger.info(
            "Structure validation passed for entity: %s", structure.entity_name
        )
    return result


def validate_count(count: Any, max_count: int) -> ValidationResult:
    """Check that ``count`` is an integer within ``1..max_count``."""
    result: ValidationResult = ValidationResult()
    if isinstance(count, bool) or not isinstance(count, int):
        result.add_error(
            "COUNT_NOT_INTEGER",
            "Count must be an integer",
            {"count": count},
        )
    elif count <= 0:
        result.add_error(
            "COUNT_TOO_SMALL",
            "Count must be greater than 0",
            {"count": count},
        )
    elif count > max_count:
        result.add_error(
            "COUNT_TOO_LARGE",
            f"Count exceeds maximum allowed ({max_count})",
            {"count": count, "max_count": max_count},
        )
    return result


def validate_description(
    description: Optional[str],
    max_length: int = MAX_DESCRIPTION_LENGTH,
) -> ValidationResult:
    """Natural-language descriptions must be non-blank and bounded."""
    result: ValidationResult = ValidationResult()
    if not description or not description.strip():
        result.add_error("DESCRIPTION_REQUIRED", "Description is required")
    elif len(description) > max_length:
        result.add_error(
            "DESCRIPTION_TOO_LONG",
            f"Description must not exceed {max_length} characters",
            {"length": len(description), "max_length": max_length},
        )
    return result


# ---------------------------------------------------------------------------
# Raising helpers used by the pipeline
# ---------------------------------------------------------------------------


def ensure_valid_count(count: Any, max_count: int) -> int:
    result: ValidationResult = validate_count(count, max_count)
    if not result:
        raise CountOutOfRangeError(result.error_messages[0], count)
    return count


def ensure_valid_structure(
    structure: StructureDefinition,
    registry: Optional[TypeRegistry] = None,
) -> ValidationResult:
    result: ValidationResult = validate_structure(structure, registry)
    if not result:
        raise StructureValidationError(result)
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MAX_DESCRIPTION_LENGTH",
    "ValidationError",
    "ValidationResult",
    "StructureValidationError",
    "CountOutOfRangeError",
    "validate_entity_name",
    "validate_fields",
    "validate_structure",
    "validate_count",
    "validate_description",
    "ensure_valid_count",
    "ensure_valid_structure",
]

logger.debug("datagen.validators loaded - %d public symbols.", len(__all__))
