# File: datagen/generator.py
"""
NexaFlow DataGen - Generation Engine (Orchestrator)
====================================================

Walks a structure definition and turns it into records:

    Structure → Validation → Record Generation → Serialization

Value dispatch for one field (first match wins)::

    1. constraints.autoIncrement truthy → next value of the run counter
    2. type "object" with children      → nested record, same context
    3. tag known to the TypeRegistry    → rule.produce(faker)
    4. anything else                    → suggestion oracle, one retry at most

All run-scoped state (counter, Faker stream, oracle memo) lives in a
``GenerationContext`` created fresh for every ``generate()`` call and passed
explicitly down the recursion.  ``DataGenerator`` itself only holds
immutable collaborators, so one instance can serve concurrent requests.

Error handling strategy:
    - Count and structure errors are raised before any record is built.
    - Oracle failures are logged and degrade to a generic lorem word.
    - Anything else aborts the run; partial record lists are never returned.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from faker import Faker

from datagen.exporters import export_records
from datagen.models import FieldDefinition, OutputFormat, Record, StructureDefinition
from datagen.oracle import NullOracle, OracleResult, SuggestionOracle
from datagen.registry import (
    TypeRegistry,
    TypeRule,
    default_registry,
    fallback_value,
    normalize_tag,
)
from datagen.utils import Timer
from datagen.validators import (
    CountOutOfRangeError,
    ValidationResult,
    ensure_valid_count,
    ensure_valid_structure,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.generator")

DEFAULT_LOCALE: str = "en_US"
MAX_SUGGESTION_RETRIES: int = 1


# ---------------------------------------------------------------------------
# Run-scoped state
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class GenerationContext:
    """
    Mutable state owned by exactly one generation run.

    ``counter`` is shared by every auto-increment field at every nesting
    level of every record in the run.  ``suggestions`` memoises oracle
    answers per ``(field name, type tag)``; failures are stored as ``None``.
    """

    faker: Faker
    oracle: SuggestionOracle
    counter: int = 1
    suggestions: Dict[Tuple[str, str], Optional[str]] = field(default_factory=dict)
    oracle_calls: int = 0
    fallbacks: int = 0

    def next_id(self) -> int:
        """Post-increment: the first call in a run returns 1."""
        value: int = self.counter
        self.counter += 1
        return value


# ---------------------------------------------------------------------------
# Value generation
# ---------------------------------------------------------------------------


class ValueGenerator:
    """Produces the value of one field against a ``GenerationContext``."""

    __slots__ = ("_registry", "_max_retries")

    def __init__(
        self,
        registry: Optional[TypeRegistry] = None,
        *,
        max_retries: int = MAX_SUGGESTION_RETRIES,
    ) -> None:
        self._registry: TypeRegistry = registry or default_registry()
        self._max_retries: int = max_retries

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def generate_record(
        self, fields: List[FieldDefinition], ctx: GenerationContext
    ) -> Record:
        """One record (or nested record): every field in declaration order."""
        return {f.name: self.generate_value(f, ctx) for f in fields}

    def generate_value(
        self,
        field_def: FieldDefinition,
        ctx: GenerationContext,
        *,
        depth: int = 0,
    ) -> Any:
        if field_def.is_auto_increment:
            return ctx.next_id()

        if field_def.is_object and field_def.children:
            return self.generate_record(field_def.children, ctx)

        rule: Optional[TypeRule] = self._registry.resolve(field_def.type)
        if rule is not None:
            return rule.produce(ctx.faker)

        return self._resolve_unknown(field_def, ctx, depth)

    # -- Unknown types ------------------------------------------------------

    def _resolve_unknown(
        self, field_def: FieldDefinition, ctx: GenerationContext, depth: int
    ) -> Any:
        if depth >= self._max_retries:
            logger.warning(
                "Suggested type '%s' for field '%s' is unknown as well; "
                "using a generic value.",
                field_def.type,
                field_def.name,
            )
            return self._fallback(ctx)

        suggestion: Optional[str] = self._suggest(field_def, ctx)
        if suggestion and suggestion != field_def.normalized_type:
            return self.generate_value(
                field_def.with_type(suggestion), ctx, depth=depth + 1
            )
        return self._fallback(ctx)

    def _suggest(self, field_def: FieldDefinition, ctx: GenerationContext) -> Optional[str]:
        key: Tuple[str, str] = (field_def.name, field_def.normalized_type)
        if key in ctx.suggestions:
            return ctx.suggestions[key]

        logger.warning(
            "Unknown field type: %s for field: %s. Using AI suggestion or default.",
            field_def.type,
            field_def.name,
        )
        ctx.oracle_calls += 1
        try:
            result: OracleResult[str] = ctx.oracle.suggest_type(field_def.name, field_def.type)
        except Exception as exc:
            logger.warning(
                "Suggestion oracle raised for field '%s': %s", field_def.name, exc
            )
            result = OracleResult.failure(str(exc))

        suggestion: Optional[str] = None
        if result.ok and result.value:
            suggestion = normalize_tag(result.value) or None
        else:
            logger.warning(
                "No type suggestion for field '%s' (%s); using a generic value.",
                field_def.name,
                result.error,
            )
        ctx.suggestions[key] = suggestion
        return suggestion

    @staticmethod
    def _fallback(ctx: GenerationContext) -> str:
        ctx.fallbacks += 1
        return fallback_value(ctx.faker)


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationResult:
    """Everything a caller needs after one pipeline run."""

    entity_name: str = ""
    format: OutputFormat = OutputFormat.JSON
    records: List[Record] = field(default_factory=list)
    payload: Any = None
    record_count: int = 0
    oracle_calls: int = 0
    fallback_values: int = 0
    validation: Optional[ValidationResult] = None
    generation_seconds: float = 0.0
    export_seconds: float = 0.0

    @property
    def total_seconds(self) -> float:
        return self.generation_seconds + self.export_seconds

    def summary(self) -> str:
        return (
            f"{self.record_count} {self.entity_name} record(s) as "
            f"{self.format.value} in {self.total_seconds:.3f}s "
            f"(oracle calls: {self.oracle_calls}, "
            f"generic values: {self.fallback_values})"
        )


# ---------------------------------------------------------------------------
# Record generation
# ---------------------------------------------------------------------------


class DataGenerator:
    """
    Record generator and pipeline entry point.

    Usage::

        generator = DataGenerator(oracle=OllamaOracle())
        records = generator.generate(structure, 25)

        result = generator.run(structure, 25, OutputFormat.CSV, max_count=10000)
        print(result.payload)

    The generator is reusable and shareable: each call builds its own
    ``GenerationContext``.
    """

    def __init__(
        self,
        oracle: Optional[SuggestionOracle] = None,
        registry: Optional[TypeRegistry] = None,
        *,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        self._oracle: SuggestionOracle = oracle if oracle is not None else NullOracle()
        self._values: ValueGenerator = ValueGenerator(registry)
        self._locale: str = locale

        logger.debug(
            "DataGenerator initialised: oracle=%r, locale=%s.", self._oracle, locale
        )

    @property
    def registry(self) -> TypeRegistry:
        return self._values.registry

    @property
    def oracle(self) -> SuggestionOracle:
        return self._oracle

    def new_context(self, seed: Optional[int] = None) -> GenerationContext:
        faker: Faker = Faker(self._locale)
        if seed is not None:
            faker.seed_instance(seed)
        return GenerationContext(faker=faker, oracle=self._oracle)

    def generate(
        self,
        structure: StructureDefinition,
        count: int,
        *,
        seed: Optional[int] = None,
        context: Optional[GenerationContext] = None,
    ) -> List[Record]:
        """
        Build ``count`` records for ``structure``.

        ``seed`` only applies to a fresh context; passing both ``seed`` and
        ``context`` is rejected.

        Raises:
            CountOutOfRangeError: ``count`` is not a positive integer.
            ValueError: both ``seed`` and ``context`` were given.
        """
        if seed is not None and context is not None:
            raise ValueError("Pass either seed or context, not both.")
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise CountOutOfRangeError("Count must be greater than 0", count)

        ctx: GenerationContext = context if context is not None else self.new_context(seed)
        logger.info(
            "Generating %d records for entity: %s", count, structure.entity_name
        )

        records: List[Record] = [
            self._values.generate_record(structure.fields, ctx) for _ in range(count)
        ]

        logger.info("Successfully generated %d records", len(records))
        return records

    def run(
        self,
        structure: StructureDefinition,
        count: int,
        fmt: OutputFormat = OutputFormat.JSON,
        *,
        max_count: int,
        table_name: Optional[str] = None,
        seed: Optional[int] = None,
    ) -> GenerationResult:
        """
        Full pipeline: validate → generate → serialize.

        Raises:
            CountOutOfRangeError: count outside ``1..max_count``.
            StructureValidationError: the structure has violations.
        """
        output_format: OutputFormat = (
            fmt if isinstance(fmt, OutputFormat) else OutputFormat(str(fmt).strip().lower())
        )
        ensure_valid_count(count, max_count)
        validation: ValidationResult = ensure_valid_structure(structure, self.registry)

        ctx: GenerationContext = self.new_context(seed)
        with Timer("generate_records") as t_gen:
            records: List[Record] = self.generate(structure, count, context=ctx)

        with Timer("export_records") as t_export:
            payload: Any = export_records(
                records, output_format, table_name=table_name or structure.entity_name
            )

        result: GenerationResult = GenerationResult(
            entity_name=structure.entity_name,
            format=output_format,
            records=records,
            payload=payload,
            record_count=len(records),
            oracle_calls=ctx.oracle_calls,
            fallback_values=ctx.fallbacks,
            validation=validation,
            generation_seconds=t_gen.elapsed,
            export_seconds=t_export.elapsed,
        )
        logger.info("Generation complete: %s.", result.summary())
        return result


# ---------------------------------------------------------------------------
# Structure file loading
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    import yaml

    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_structure_file(path: Path) -> StructureDefinition:
    """
    Load a structure definition from a JSON or YAML file.

    The file holds either the structure itself (``entityName`` + ``fields``)
    or a request-shaped document with a top-level ``structure`` key.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Structure file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Structure path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        raw: Dict[str, Any] = _load_yaml_file(path)
    elif suffix == ".json":
        raw = _load_json_file(path)
    else:
        logger.info("Unknown extension '%s' - trying JSON then YAML.", suffix)
        try:
            raw = _load_json_file(path)
        except ValueError:
            raw = _load_yaml_file(path)

    data: Any = raw.get("structure", raw)
    if not isinstance(data, dict):
        raise ValueError("'structure' must be a mapping.")
    return StructureDefinition.model_validate(data)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_LOCALE",
    "MAX_SUGGESTION_RETRIES",
    "GenerationContext",
    "ValueGenerator",
    "GenerationResult",
    "DataGenerator",
    "load_structure_file",
]

logger.debug("datagen.generator loaded.")
