# File: datagen/oracle.py
"""
NexaFlow DataGen - Suggestion Oracle
=====================================
Best-effort language-model collaborator.  It can:

    - guess a semantic type tag for a field the registry does not know,
    - review a structure definition and offer suggestions,
    - draft a structure definition from a plain-English description.

Every call answers with an ``OracleResult``: either a value or an error
message.  Callers branch on ``result.ok`` instead of catching exceptions, and
an unavailable model never turns into a hard failure for generation or
validation.

Two implementations ship with the package:

    - ``OllamaOracle`` talks to a local Ollama server over HTTP (httpx,
      non-streaming ``/api/generate``).
    - ``NullOracle`` is permanently unavailable; used when no model is
      configured.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Protocol, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from datagen.models import StructureDefinition
from datagen.registry import TypeRegistry, default_registry

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.oracle")

T = TypeVar("T")

# Tags offered to the model when it is asked to classify a field.
SUGGESTABLE_TYPES: tuple[str, ...] = (
    "string", "int", "decimal", "boolean", "date", "datetime", "email",
    "phone", "address", "zipcode", "url", "uuid",
)

_TAG_TOKEN_RE: re.Pattern[str] = re.compile(r"[a-z][a-z_]*")
_CODE_FENCE_RE: re.Pattern[str] = re.compile(r"^```(?:json)?\s*|\s*```$")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OracleResult(Generic[T]):
    """Either a value (``ok``) or the reason the oracle could not answer."""

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "OracleResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "OracleResult[T]":
        return cls(error=error or "unknown oracle error")

    def __repr__(self) -> str:
        if self.ok:
            return f"<OracleResult ok: {self.value!r}>"
        return f"<OracleResult failed: {self.error}>"


@dataclass(frozen=True, slots=True)
class StructureReview:
    """Model verdict on a structure definition."""

    is_valid: bool
    suggestions: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class SuggestionOracle(Protocol):
    """Contract every oracle implementation satisfies."""

    model_name: str

    def is_available(self) -> bool:
        """Health probe.  Must never raise."""
        ...

    def suggest_type(self, field_name: str, type_hint: str) -> OracleResult[str]:
        ...

    def validate_structure(
        self, structure: StructureDefinition
    ) -> OracleResult[StructureReview]:
        ...

    def generate_structure(
        self, description: str
    ) -> OracleResult[StructureDefinition]:
        ...


class NullOracle:
    """Oracle used when no language model is configured."""

    model_name: str = ""

    def __init__(self, reason: str = "language model is not configured") -> None:
        self._reason: str = reason

    def is_available(self) -> bool:
        return False

    def suggest_type(self, field_name: str, type_hint: str) -> OracleResult[str]:
        return OracleResult.failure(self._reason)

    def validate_structure(
        self, structure: StructureDefinition
    ) -> OracleResult[StructureReview]:
        return OracleResult.failure(self._reason)

    def generate_structure(
        self, description: str
    ) -> OracleResult[StructureDefinition]:
        return OracleResult.failure(self._reason)

    def close(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"<NullOracle: {self._reason}>"


# ---------------------------------------------------------------------------
# Response parsing helpers (pure, unit-tested)
# ---------------------------------------------------------------------------


def parse_type_suggestion(
    text: str, registry: Optional[TypeRegistry] = None
) -> Optional[str]:
    """
    Extract a type tag from a free-form model reply.

    Models like to answer ``"Email."``, ``"`uuid`"`` or a whole sentence
    (``"The best type is email"``).  The first token the registry knows
    wins; otherwise the first identifier-looking token is returned.
    """
    tokens: List[str] = _TAG_TOKEN_RE.findall((text or "").strip().lower())
    if not tokens:
        return None
    known: TypeRegistry = registry if registry is not None else default_registry()
    for token in tokens:
        if known.is_supported(token):
            return token
    return tokens[0]


def parse_review(text: str) -> StructureReview:
    """
    Interpret a reply made of a ``VALID`` / ``INVALID: ...`` verdict followed
    by ``SUGGESTION: ...`` lines.
    """
    upper: str = (text or "").upper()
    is_valid: bool = "VALID" in upper and "INVALID" not in upper

    suggestions: List[str] = []
    for line in (text or "").splitlines():
        stripped: str = line.strip()
        if stripped.upper().startswith("SUGGESTION:"):
            suggestion: str = stripped[len("SUGGESTION:"):].strip()
            if suggestion:
                suggestions.append(suggestion)
    return StructureReview(is_valid=is_valid, suggestions=suggestions)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block (```json ... ```)."""
    return _CODE_FENCE_RE.sub("", (text or "").strip()).strip()


def parse_structure(text: str) -> StructureDefinition:
    """Parse a model reply into a ``StructureDefinition``; raises ``ValueError``."""
    cleaned: str = strip_code_fences(text)
    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Model reply is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object, got {type(data).__name__}."
        )
    try:
        return StructureDefinition.model_validate(data)
    except PydanticValidationError as exc:
        raise ValueError(f"Model reply is not a structure definition: {exc}") from exc


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def _suggest_prompt(field_name: str, type_hint: str) -> str:
    context: str = f"The caller described it as '{type_hint}'.\n" if type_hint else ""
    return (
        f"Pick the most appropriate data type for a field named '{field_name}'.\n"
        f"{context}"
        f"Choose one of: {', '.join(SUGGESTABLE_TYPES)}\n\n"
        "Answer with the type name only."
    )


def _review_prompt(structure: StructureDefinition) -> str:
    return (
        "Review this data structure definition.\n"
        f"Structure: {json.dumps(structure.to_wire(), ensure_ascii=False)}\n\n"
        "Check that the field names are sensible, that the data types fit the "
        "fields and that nothing is inconsistent.\n\n"
        "Start your answer with 'VALID' if the structure is fine, or "
        "'INVALID: <reasons>' otherwise. Put each improvement on its own line "
        "starting with 'SUGGESTION: '."
    )


def _structure_prompt(description: str) -> str:
    return (
        "Write a JSON data structure definition for this description:\n"
        f'"{description}"\n\n'
        "Reply with raw JSON only (no markdown), shaped exactly like:\n"
        '{"entityName": "EntityName", "fields": '
        '[{"name": "FieldName", "type": "string", "constraints": {}}]}\n\n'
        f"Common types: {', '.join(SUGGESTABLE_TYPES)}\n"
        'Nested objects use type "object" and their own "fields" array.'
    )


# ---------------------------------------------------------------------------
# Ollama implementation
# ---------------------------------------------------------------------------


class OllamaOracle:
    """
    Oracle backed by a local Ollama server.

    Usage::

        with OllamaOracle(base_url="http://localhost:11434", model="llama2") as oracle:
            if oracle.is_available():
                result = oracle.suggest_type("customer_email", "contact")

    The underlying ``httpx.Client`` is thread-safe, so one oracle can serve
    concurrent requests.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama2",
        *,
        timeout: float = 30.0,
        temperature: float = 0.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url: str = base_url.rstrip("/")
        self.model_name: str = model
        self.temperature: float = temperature
        self._client: httpx.Client = client or httpx.Client(
            base_url=self.base_url, timeout=timeout
        )
        logger.info(
            "Initialised OllamaOracle: base_url=%s, model=%s, timeout=%ss.",
            self.base_url,
            self.model_name,
            timeout,
        )

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "OllamaOracle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Transport ----------------------------------------------------------

    def _complete(self, prompt: str) -> str:
        """Run one non-streaming completion.  Raises ``httpx.HTTPError``."""
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        response: httpx.Response = self._client.post("/api/generate", json=payload)
        response.raise_for_status()
        body: Any = response.json()
        if not isinstance(body, dict):
            raise ValueError("Unexpected Ollama response body.")
        return str(body.get("response") or "")

    # -- Contract -----------------------------------------------------------

    def is_available(self) -> bool:
        try:
            response: httpx.Response = self._client.get("/api/tags")
            response.raise_for_status()
            models: List[Dict[str, Any]] = response.json().get("models") or []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("Ollama is not available at %s: %s", self.base_url, exc)
            return False

        wanted: str = self.model_name.lower()
        available: bool = any(
            wanted in str(m.get("name", "")).lower() for m in models if isinstance(m, dict)
        )
        logger.info("Ollama available: %s (model=%s).", available, self.model_name)
        return available

    def suggest_type(self, field_name: str, type_hint: str) -> OracleResult[str]:
        try:
            reply: str = self._complete(_suggest_prompt(field_name, type_hint))
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Type suggestion for '%s' failed: %s", field_name, exc)
            return OracleResult.failure(str(exc))

        suggestion: Optional[str] = parse_type_suggestion(reply)
        if suggestion is None:
            return OracleResult.failure(f"No type found in model reply: {reply!r}")

        logger.info("Suggested type for '%s': %s", field_name, suggestion)
        return OracleResult.success(suggestion)

    def validate_structure(
        self, structure: StructureDefinition
    ) -> OracleResult[StructureReview]:
        logger.info("Requesting structure review for entity: %s", structure.entity_name)
        try:
            reply: str = self._complete(_review_prompt(structure))
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Structure review failed: %s", exc)
            return OracleResult.failure(str(exc))
        return OracleResult.success(parse_review(reply))

    def generate_structure(
        self, description: str
    ) -> OracleResult[StructureDefinition]:
        logger.info("Generating structure from description (%d chars).", len(description))
        try:
            reply: str = self._complete(_structure_prompt(description))
            logger.debug("Raw structure reply: %s", reply)
            structure: StructureDefinition = parse_structure(reply)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Structure generation failed: %s", exc)
            return OracleResult.failure(str(exc))

        logger.info("Generated structure: %s", structure.entity_name)
        return OracleResult.success(structure)

    def __repr__(self) -> str:
        return f"<OllamaOracle {self.model_name} @ {self.base_url}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SUGGESTABLE_TYPES",
    "OracleResult",
    "StructureReview",
    "SuggestionOracle",
    "NullOracle",
    "OllamaOracle",
    "parse_type_suggestion",
    "parse_review",
    "strip_code_fences",
    "parse_structure",
]

logger.debug("datagen.oracle loaded - %d public symbols.", len(__all__))
