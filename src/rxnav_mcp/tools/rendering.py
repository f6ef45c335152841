"""Render lookup responses as plain text for the retrieval pipeline.

Each lookup becomes a block headed "=== <LABEL> INFORMATION ===" followed by
the query, the resolved RxCUI and one numbered line per record, with blank
lines between entries.
"""

from pydantic import BaseModel

from rxnav_mcp.tools.models import (
    ATCClassificationResponse,
    BrandNamesResponse,
    DrugSearchResponse,
    GenericNameResponse,
    IngredientsResponse,
)


def _render_search(response: DrugSearchResponse) -> list[str]:
    lines = [f"Query: {response.query}", f"Total Found: {response.total_found}"]
    for idx, drug in enumerate(response.results, start=1):
        lines.append(f"{idx}. RxCUI: {drug.rxcui}, Name: {drug.name}, Type: {drug.term_type}")
    return lines


def _render_generic(response: GenericNameResponse) -> list[str]:
    lines = [f"Query: {response.query}", f"RxCUI: {response.rxcui}"]
    for idx, generic in enumerate(response.generic_names, start=1):
        lines.append(
            f"{idx}. Generic Name: {generic.name}, RxCUI: {generic.rxcui}, Type: {generic.term_type}"
        )
    return lines


def _render_brand(response: BrandNamesResponse) -> list[str]:
    lines = [f"Query: {response.query}", f"Generic RxCUI: {response.generic_rxcui}"]
    for idx, brand in enumerate(response.brand_names, start=1):
        lines.append(
            f"{idx}. Brand Name: {brand.name}, RxCUI: {brand.rxcui}, Type: {brand.term_type}"
        )
    return lines


def _render_atc(response: ATCClassificationResponse) -> list[str]:
    lines = [f"Query: {response.query}", f"RxCUI: {response.rxcui}"]
    for idx, atc in enumerate(response.atc_codes, start=1):
        lines.append(
            f"{idx}. ATC Code: {atc.code}, Level: {atc.level}, Description: {atc.name}"
        )
    return lines


def _render_ingredients(response: IngredientsResponse) -> list[str]:
    lines = [f"Query: {response.query}", f"RxCUI: {response.rxcui}"]
    for idx, ingredient in enumerate(response.ingredients, start=1):
        lines.append(
            f"{idx}. Ingredient: {ingredient.name}, RxCUI: {ingredient.rxcui}, "
            f"Type: {ingredient.term_type}"
        )
        if ingredient.strength:
            lines.append(f"   Strength: {ingredient.strength}")
        if ingredient.dosage_form:
            lines.append(f"   Dosage Form: {ingredient.dosage_form}")
    return lines


RENDERERS = {
    DrugSearchResponse: _render_search,
    GenericNameResponse: _render_generic,
    BrandNamesResponse: _render_brand,
    ATCClassificationResponse: _render_atc,
    IngredientsResponse: _render_ingredients,
}


def render_lookup_text(label: str, response: BaseModel) -> str:
    """Render one lookup response under a "=== LABEL INFORMATION ===" header.

    Unknown response types are rendered as indented JSON.
    """
    parts = [f"=== {label.upper()} INFORMATION ==="]

    renderer = RENDERERS.get(type(response))
    if renderer is None:
        parts.append(response.model_dump_json(indent=2))
    else:
        parts.extend(renderer(response))

    return "\n\n".join(parts)
