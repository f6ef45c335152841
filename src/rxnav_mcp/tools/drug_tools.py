"""Drug terminology lookup tools.

This module provides the five RxNav lookups exposed as MCP tools: name
search, generic names, brand names, ATC classification and active
ingredients. Identifiers may be drug names or numeric RxCUIs.

Lookups that find nothing return a response with an explanatory message
instead of raising; RxNav transport failures propagate as UpstreamError.
"""

import logging
from typing import Any

from rxnav_mcp.exceptions import UpstreamError
from rxnav_mcp.rxnav.atc import get_atc_level, get_atc_level_name
from rxnav_mcp.rxnav.resolver import iter_concepts
from rxnav_mcp.tools.base_tool import BaseTool
from rxnav_mcp.tools.models import (
    ATCClassificationResponse,
    ATCCode,
    BrandNamesResponse,
    DrugConcept,
    DrugSearchResponse,
    GenericNameResponse,
    Ingredient,
    IngredientsResponse,
)

logger = logging.getLogger(__name__)

INGREDIENT_TERM_TYPES = ["IN", "PIN"]
BRAND_TERM_TYPES = ["SBD", "BPCK", "BN"]
GENERIC_PROPERTY_NAMES = ("RxNorm Name", "Generic Name")

NO_DRUG_FOUND = "No drug found matching the identifier"


def to_concept(concept: dict[str, Any], fallback_term_type: str | None = None) -> DrugConcept:
    """Build a DrugConcept from an RxNav conceptProperties entry."""
    return DrugConcept(
        rxcui=str(concept.get("rxcui", "")),
        name=concept.get("name", ""),
        term_type=concept.get("tty") or fallback_term_type,
    )


class DrugTerminologyTools(BaseTool):
    """RxNav-backed lookups for drug names, classifications and ingredients."""

    async def search_drug_by_name(self, drug_name: str, limit: int = 10) -> DrugSearchResponse:
        """Search RxNorm concepts matching a brand, generic or ingredient name.

        Concept names carry their synonym in parentheses when RxNav has one.

        Args:
            drug_name: Name to search for
            limit: Maximum number of concepts to return

        Returns:
            Search response with at most limit results
        """
        data = await self.resolver.search(drug_name)

        results = []
        for group, concept in iter_concepts(data, "drugGroup"):
            drug = to_concept(concept, fallback_term_type=group.get("tty"))
            if concept.get("synonym"):
                drug.name = f"{drug.name} ({concept['synonym']})"
            results.append(drug)

        if not results:
            logger.info(f"No drugs found for '{drug_name}'")
            return DrugSearchResponse(
                query=drug_name, message="No drugs found matching the search criteria"
            )

        limited_results = results[:limit]
        return DrugSearchResponse(
            query=drug_name,
            total_found=len(results),
            returned_count=len(limited_results),
            results=limited_results,
        )

    async def get_generic_name(self, drug_identifier: str) -> GenericNameResponse:
        """Generic (ingredient) names for a drug name or RxCUI.

        Uses related IN/PIN concepts, falling back to the "RxNorm Name" and
        "Generic Name" properties of the concept itself.
        """
        rxcui = await self.resolver.resolve_rxcui(drug_identifier)
        if rxcui is None:
            return GenericNameResponse(query=drug_identifier, message=NO_DRUG_FOUND)

        generic_names = [
            to_concept(concept)
            for concept in await self.resolver.related_concepts(rxcui, INGREDIENT_TERM_TYPES)
        ]

        if not generic_names:
            logger.info(f"No related ingredients for RxCUI {rxcui}; checking properties")
            for prop in await self.resolver.all_properties(rxcui):
                if prop.get("propName") in GENERIC_PROPERTY_NAMES and prop.get("propValue"):
                    generic_names.append(
                        DrugConcept(rxcui=rxcui, name=prop["propValue"], term_type="GENERIC")
                    )

        return GenericNameResponse(
            query=drug_identifier,
            rxcui=rxcui,
            generic_names=generic_names,
            total_found=len(generic_names),
        )

    async def get_brand_names(self, generic_name: str) -> BrandNamesResponse:
        """Branded concepts (SBD, BPCK, BN) for a generic drug name."""
        generic_rxcui = await self.resolver.resolve_ingredient_rxcui(generic_name)
        if generic_rxcui is None:
            return BrandNamesResponse(
                query=generic_name, message="No generic drug found matching the name"
            )

        brand_names = [
            to_concept(concept)
            for concept in await self.resolver.related_concepts(generic_rxcui, BRAND_TERM_TYPES)
        ]

        return BrandNamesResponse(
            query=generic_name,
            generic_rxcui=generic_rxcui,
            brand_names=brand_names,
            total_found=len(brand_names),
        )

    async def get_atc_classification(self, drug_identifier: str) -> ATCClassificationResponse:
        """ATC codes for a drug name or RxCUI.

        When the concept has no ATC property (typical for branded or clinical
        drugs), the ATC codes of its ingredients are collected instead. A
        failed ingredient lookup is logged and skipped.
        """
        rxcui = await self.resolver.resolve_rxcui(drug_identifier)
        if rxcui is None:
            return ATCClassificationResponse(query=drug_identifier, message=NO_DRUG_FOUND)

        codes = await self.resolver.property_values(rxcui, "ATC")

        if not codes:
            for ingredient in await self.resolver.related_concepts(rxcui, INGREDIENT_TERM_TYPES):
                ingredient_rxcui = ingredient.get("rxcui")
                if not ingredient_rxcui:
                    continue
                try:
                    codes.extend(await self.resolver.property_values(ingredient_rxcui, "ATC"))
                except UpstreamError as e:
                    logger.warning(f"Failed to get ATC for ingredient {ingredient_rxcui}: {e}")

        atc_codes = []
        for code in dict.fromkeys(codes):
            level = get_atc_level(code)
            atc_codes.append(ATCCode(code=code, level=level, name=get_atc_level_name(level)))

        return ATCClassificationResponse(
            query=drug_identifier,
            rxcui=rxcui,
            atc_codes=atc_codes,
            total_found=len(atc_codes),
        )

    async def get_drug_ingredients(self, drug_identifier: str) -> IngredientsResponse:
        """Active ingredients of a drug name or RxCUI, with strength and dose form.

        Falls back to the IN/PIN groups of /allrelated.json when /related.json
        returns nothing. Ingredients are de-duplicated by RxCUI.
        """
        rxcui = await self.resolver.resolve_rxcui(drug_identifier)
        if rxcui is None:
            return IngredientsResponse(query=drug_identifier, message=NO_DRUG_FOUND)

        ingredients = []
        for concept in await self.resolver.related_concepts(rxcui, INGREDIENT_TERM_TYPES):
            ingredient = Ingredient(
                rxcui=str(concept.get("rxcui", "")),
                name=concept.get("name", ""),
                term_type=concept.get("tty"),
            )
            try:
                for prop in await self.resolver.all_properties(ingredient.rxcui):
                    if prop.get("propName") == "Strength":
                        ingredient.strength = prop.get("propValue")
                    elif prop.get("propName") == "Dose Form":
                        ingredient.dosage_form = prop.get("propValue")
            except UpstreamError as e:
                logger.warning(f"Failed to get properties for ingredient {ingredient.rxcui}: {e}")
            ingredients.append(ingredient)

        if not ingredients:
            logger.info(f"No related ingredients for RxCUI {rxcui}; checking allrelated")
            ingredients = [
                Ingredient(
                    rxcui=str(concept.get("rxcui", "")),
                    name=concept.get("name", ""),
                    term_type=concept.get("tty"),
                )
                for concept in await self.resolver.all_related_concepts(
                    rxcui, INGREDIENT_TERM_TYPES
                )
            ]

        by_rxcui: dict[str, Ingredient] = {}
        for ingredient in ingredients:
            by_rxcui.setdefault(ingredient.rxcui, ingredient)
        unique_ingredients = list(by_rxcui.values())

        return IngredientsResponse(
            query=drug_identifier,
            rxcui=rxcui,
            ingredients=unique_ingredients,
            total_found=len(unique_ingredients),
        )
