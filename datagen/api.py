# File: datagen/api.py
"""
NexaFlow DataGen - HTTP API
============================
FastAPI application exposing the generation engine.

Routes:
    POST /api/data/generate            - Generate records (json | csv | sql)
    POST /api/data/validate-structure  - Structural check + model advice
    POST /api/data/generate-structure  - Draft a structure from a description
    GET  /api/data/supported-types     - Sorted catalogue of type tags

Run with::

    uvicorn datagen.api:app --port 8000

Endpoints are plain ``def`` functions: FastAPI runs them in its threadpool,
and each request gets its own ``GenerationContext`` from ``DataGenerator``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from datagen import __version__
from datagen.config import Settings, build_oracle, get_settings
from datagen.generator import DataGenerator, GenerationResult
from datagen.models import (
    GenerateDataRequest,
    GenerateDataResponse,
    GenerateStructureRequest,
    SupportedTypesResponse,
    ValidateStructureRequest,
    ValidationResponse,
)
from datagen.oracle import OracleResult, StructureReview, SuggestionOracle
from datagen.validators import (
    CountOutOfRangeError,
    StructureValidationError,
    ValidationResult,
    validate_description,
    validate_structure,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.api")

AI_UNAVAILABLE_ADVISORY: str = (
    "AI validation is unavailable - only basic validation performed"
)
AI_FAILED_ADVISORY: str = "AI validation unavailable - basic validation passed"


def _error(status_code: int, message: str, details: Optional[List[str]] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_generator(request: Request) -> DataGenerator:
    return request.app.state.generator


def get_oracle(request: Request) -> SuggestionOracle:
    return request.app.state.oracle


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Optional[Settings] = None,
    oracle: Optional[SuggestionOracle] = None,
    generator: Optional[DataGenerator] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Every collaborator can be injected; missing ones are built from
    ``settings`` (or the process-wide settings).
    """
    if settings is None:
        settings = get_settings()
    oracle = oracle if oracle is not None else build_oracle(settings)
    generator = generator or DataGenerator(
        oracle=oracle, locale=settings.data_generation.locale
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "DataGen API starting: oracle=%r, max_count=%d.",
            oracle,
            settings.data_generation.max_count,
        )
        yield
        close = getattr(oracle, "close", None)
        if callable(close):
            close()
        logger.info("DataGen API stopped.")

    app = FastAPI(
        title="NexaFlow DataGen",
        description=(
            "Sample data generator: realistic records from a structure "
            "definition, optionally assisted by a local language model."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.oracle = oracle
    app.state.generator = generator

    # -- Routes -------------------------------------------------------------

    @app.post("/api/data/generate", response_model=GenerateDataResponse)
    def generate_data(
        body: GenerateDataRequest,
        app_settings: Settings = Depends(get_app_settings),
        data_generator: DataGenerator = Depends(get_generator),
    ) -> Any:
        count: int = (
            body.count
            if body.count is not None
            else app_settings.data_generation.default_count
        )
        logger.info(
            "Received data generation request for entity: %s, Count: %d, Format: %s",
            body.structure.entity_name,
            count,
            body.format.value,
        )

        try:
            result: GenerationResult = data_generator.run(
                body.structure,
                count,
                body.format,
                max_count=app_settings.data_generation.max_count,
                seed=body.seed,
            )
        except CountOutOfRangeError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except StructureValidationError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, "Invalid structure", exc.errors)
        except Exception:
            logger.error("Error generating data", exc_info=True)
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "An error occurred while generating data",
            )

        return GenerateDataResponse(format=result.format, data=result.payload)

    @app.post(
        "/api/data/validate-structure",
        response_model=ValidationResponse,
        response_model_by_alias=True,
    )
    def validate_structure_endpoint(
        body: ValidateStructureRequest,
        data_generator: DataGenerator = Depends(get_generator),
        structure_oracle: SuggestionOracle = Depends(get_oracle),
    ) -> Any:
        logger.info("Validating structure for entity: %s", body.structure.entity_name)
        result: ValidationResult = validate_structure(body.structure, data_generator.registry)

        suggestions: List[str] = []
        if structure_oracle.is_available():
            review: OracleResult[StructureReview] = structure_oracle.validate_structure(
                body.structure
            )
            if review.ok and review.value is not None:
                suggestions.extend(review.value.suggestions)
            else:
                suggestions.append(AI_FAILED_ADVISORY)
        else:
            suggestions.append(AI_UNAVAILABLE_ADVISORY)

        return ValidationResponse(
            is_valid=result.is_valid,
            errors=result.error_messages,
            suggestions=suggestions,
        )

    @app.post("/api/data/generate-structure")
    def generate_structure(
        body: GenerateStructureRequest,
        structure_oracle: SuggestionOracle = Depends(get_oracle),
    ) -> Any:
        logger.info("Generating structure from description")
        check: ValidationResult = validate_description(body.description)
        if not check:
            return _error(status.HTTP_400_BAD_REQUEST, check.error_messages[0])

        if not structure_oracle.is_available():
            return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "AI service is unavailable")

        drafted = structure_oracle.generate_structure(body.description)
        if not drafted.ok or drafted.value is None:
            logger.error("Structure generation failed: %s", drafted.error)
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Failed to generate structure from description",
            )

        return JSONResponse(content=drafted.value.to_wire())

    @app.get("/api/data/supported-types", response_model=SupportedTypesResponse)
    def supported_types(
        data_generator: DataGenerator = Depends(get_generator),
    ) -> SupportedTypesResponse:
        return SupportedTypesResponse(types=data_generator.registry.supported_types())

    return app


app: FastAPI = create_app()

__all__: List[str] = [
    "AI_UNAVAILABLE_ADVISORY",
    "AI_FAILED_ADVISORY",
    "create_app",
    "app",
]

logger.debug("datagen.api loaded.")
