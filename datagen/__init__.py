# File: datagen/__init__.py
"""
NexaFlow DataGen - Sample Data Generator
=========================================

Turns a structure definition (entity name + typed, possibly nested fields)
into realistic records and renders them as JSON, CSV or SQL ``INSERT``
statements.  Field types the built-in catalogue does not know can be
resolved through an optional local language model (Ollama).

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │  CLI / HTTP  │────▶│ DataGenerator │────▶│  ValueGenerator  │
    │ (cli, api)   │     │ (generator.py)│     │  ──▶ oracle.py   │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
                    ┌────────────┼────────────┬────────────┐
                    ▼            ▼            ▼            ▼
             ┌──────────┐ ┌───────────┐ ┌───────────┐ ┌──────────┐
             │validators│ │  models   │ │ exporters │ │ registry │
             └──────────┘ └───────────┘ └───────────┘ └──────────┘

Usage::

    # As a library
    from datagen import DataGenerator, StructureDefinition, OutputFormat
    structure = StructureDefinition.model_validate(payload)
    result = DataGenerator().run(structure, 25, OutputFormat.CSV, max_count=10000)

    # From the command line
    python -m datagen -s customer.json -n 25 -f csv

    # As a service
    uvicorn datagen.api:app --port 8000

Public API:
    - DataGenerator       - Pipeline entry point
    - StructureDefinition - Structure model
    - TypeRegistry        - Type tag catalogue
    - OllamaOracle        - Language-model suggestions
    - validate_structure  - Structural validation entry point
    - export_records      - Serializer dispatch
"""

from __future__ import annotations

__version__: str = "1.0.0"
__author__: str = "NexaFlow Team"
__license__: str = "MIT"

from datagen.models import (
    FieldDefinition,
    OutputFormat,
    Record,
    StructureDefinition,
)
from datagen.registry import TypeRegistry, TypeRule, default_registry
from datagen.oracle import (
    NullOracle,
    OllamaOracle,
    OracleResult,
    StructureReview,
    SuggestionOracle,
)
from datagen.validators import (
    CountOutOfRangeError,
    StructureValidationError,
    ValidationResult,
    validate_structure,
)
from datagen.exporters import export_records, to_csv, to_sql
from datagen.generator import (
    DataGenerator,
    GenerationContext,
    GenerationResult,
    load_structure_file,
)
from datagen.config import Settings, build_oracle, get_settings, load_settings

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core
    "DataGenerator",
    "GenerationContext",
    "GenerationResult",
    "load_structure_file",
    # Models
    "FieldDefinition",
    "OutputFormat",
    "Record",
    "StructureDefinition",
    # Types
    "TypeRegistry",
    "TypeRule",
    "default_registry",
    # Oracle
    "NullOracle",
    "OllamaOracle",
    "OracleResult",
    "StructureReview",
    "SuggestionOracle",
    # Validation
    "CountOutOfRangeError",
    "StructureValidationError",
    "ValidationResult",
    "validate_structure",
    # Exporters
    "export_records",
    "to_csv",
    "to_sql",
    # Configuration
    "Settings",
    "build_oracle",
    "get_settings",
    "load_settings",
]
