"""Pydantic models for MCP tool requests and responses.

This module defines the data models used by the drug-terminology tools.
Using Pydantic provides automatic validation, serialization, and documentation.

Key Components:
    - Request models for each tool, with identifier validation
    - Response models mirroring the JSON each tool returns
    - ErrorResponse returned by the server when a tool fails

Design Principles:
    - Comprehensive field descriptions for MCP tool documentation
    - Limits taken from the RxNav tool contracts (search 1-50, top_k 1-10)
"""

from pydantic import BaseModel, Field, field_validator

MAX_IDENTIFIER_LENGTH = 200


def validate_drug_identifier(value: str) -> str:
    """Validate a drug name or RxCUI argument.

    Args:
        value: Raw identifier

    Returns:
        Identifier with surrounding whitespace removed

    Raises:
        ValueError: If the identifier is empty, whitespace only, or too long
    """
    if not value:
        raise ValueError("Drug identifier must be a non-empty string")
    if not value.strip():
        raise ValueError("Drug identifier cannot be empty or whitespace only")
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise ValueError(
            f"Drug identifier is too long (maximum {MAX_IDENTIFIER_LENGTH} characters)"
        )
    return value.strip()


# =============================================================================
# REQUEST MODELS
# =============================================================================


class SearchDrugByNameRequest(BaseModel):
    """Request model for searching RxNorm concepts by drug name."""

    drug_name: str = Field(
        ..., description="Brand name, generic name, or ingredient name to search for"
    )
    limit: int = Field(10, ge=1, le=50, description="Maximum number of results (1-50)")

    @field_validator("drug_name")
    @classmethod
    def validate_drug_name(cls, value: str) -> str:
        return validate_drug_identifier(value)


class DrugIdentifierRequest(BaseModel):
    """Request model for tools keyed by a drug name or RxCUI."""

    drug_identifier: str = Field(
        ..., description="Drug name (brand or generic) or numeric RxCUI"
    )

    @field_validator("drug_identifier")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        return validate_drug_identifier(value)


class BrandNamesRequest(BaseModel):
    """Request model for finding brand names of a generic drug."""

    generic_name: str = Field(..., description="Generic drug name to find brand names for")

    @field_validator("generic_name")
    @classmethod
    def validate_generic_name(cls, value: str) -> str:
        return validate_drug_identifier(value)


class RAGFilters(BaseModel):
    """Additional filters for data retrieval in the RAG tool."""

    limit: int = Field(50, ge=1, le=100, description="Maximum drug records to fetch (1-100)")


class AEPipelineRAGRequest(BaseModel):
    """Request model for the aggregated retrieval/summarization tool."""

    query: str | None = Field(
        None, description="Natural language query, e.g. 'ATC classification and generic names'"
    )
    drug: str | None = Field(None, description="Drug name to focus on, e.g. 'aspirin'")
    condition: str | None = Field(
        None, description="Medical condition context, e.g. 'diabetes'"
    )
    top_k: int = Field(5, ge=1, le=10, description="Number of most relevant chunks (1-10)")
    filters: RAGFilters = Field(default_factory=RAGFilters, description="Retrieval filters")

    @field_validator("drug")
    @classmethod
    def validate_drug(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return validate_drug_identifier(value)


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class DrugConcept(BaseModel):
    """An RxNorm concept."""

    rxcui: str = Field(..., description="RxNorm Concept Unique Identifier")
    name: str = Field(..., description="Concept name")
    term_type: str | None = Field(None, description="RxNorm term type (IN, PIN, SBD, BN...)")


class DrugSearchResponse(BaseModel):
    """Response model for drug name searches."""

    query: str = Field(..., description="Drug name that was searched")
    total_found: int = Field(0, description="Concepts found before applying the limit")
    returned_count: int = Field(0, description="Concepts returned")
    results: list[DrugConcept] = Field(default_factory=list, description="Matching concepts")
    message: str | None = Field(None, description="Explanation when nothing was found")


class GenericNameResponse(BaseModel):
    """Response model for generic name lookups."""

    query: str = Field(..., description="Identifier that was looked up")
    rxcui: str | None = Field(None, description="Resolved RxCUI")
    generic_names: list[DrugConcept] = Field(default_factory=list, description="Generic names")
    total_found: int = Field(0, description="Number of generic names")
    message: str | None = Field(None, description="Explanation when nothing was found")


class BrandNamesResponse(BaseModel):
    """Response model for brand name lookups."""

    query: str = Field(..., description="Generic name that was looked up")
    generic_rxcui: str | None = Field(None, description="RxCUI of the generic ingredient")
    brand_names: list[DrugConcept] = Field(default_factory=list, description="Branded concepts")
    total_found: int = Field(0, description="Number of branded concepts")
    message: str | None = Field(None, description="Explanation when nothing was found")


class ATCCode(BaseModel):
    """A WHO ATC classification code."""

    code: str = Field(..., description="ATC code, e.g. 'N02BA01'")
    level: int = Field(..., ge=0, le=5, description="Hierarchy level (0 when unrecognized)")
    name: str = Field(..., description="Level name, e.g. 'Chemical substance'")


class ATCClassificationResponse(BaseModel):
    """Response model for ATC classification lookups."""

    query: str = Field(..., description="Identifier that was looked up")
    rxcui: str | None = Field(None, description="Resolved RxCUI")
    atc_codes: list[ATCCode] = Field(default_factory=list, description="Unique ATC codes")
    total_found: int = Field(0, description="Number of ATC codes")
    message: str | None = Field(None, description="Explanation when nothing was found")


class Ingredient(BaseModel):
    """An active ingredient."""

    rxcui: str = Field(..., description="Ingredient RxCUI")
    name: str = Field(..., description="Ingredient name")
    term_type: str | None = Field(None, description="IN or PIN")
    strength: str | None = Field(None, description="Strength, when RxNav reports one")
    dosage_form: str | None = Field(None, description="Dose form, when RxNav reports one")


class IngredientsResponse(BaseModel):
    """Response model for ingredient lookups."""

    query: str = Field(..., description="Identifier that was looked up")
    rxcui: str | None = Field(None, description="Resolved RxCUI")
    ingredients: list[Ingredient] = Field(default_factory=list, description="Unique ingredients")
    total_found: int = Field(0, description="Number of ingredients")
    message: str | None = Field(None, description="Explanation when nothing was found")


# =============================================================================
# COMMON RESPONSE MODELS
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Error message")
    details: str | None = Field(None, description="Additional error details")
    operation: str | None = Field(None, description="Operation that failed")
