"""Terminology resolver: the one place that knows RxNav response shapes.

Every lookup tool follows the same steps (identifier -> RxCUI -> related
concepts or properties). They are collected here so tools only deal with
flat lists of concept dictionaries.
"""

import logging
import re
from collections.abc import Iterator
from typing import Any

from rxnav_mcp.rxnav.client import RxNavClient

logger = logging.getLogger(__name__)

RXCUI_PATTERN = re.compile(r"^\d+$")


def is_rxcui(identifier: str) -> bool:
    """Return True when the identifier is already a numeric RxCUI."""
    return bool(RXCUI_PATTERN.match(identifier))


def iter_concept_groups(data: dict[str, Any], group_key: str) -> Iterator[dict[str, Any]]:
    """Yield conceptGroup entries from an RxNav payload.

    Args:
        data: Decoded RxNav JSON
        group_key: Top-level wrapper, e.g. "drugGroup" or "relatedGroup"
    """
    wrapper = data.get(group_key) or {}
    for group in wrapper.get("conceptGroup") or []:
        if isinstance(group, dict):
            yield group


def iter_concepts(data: dict[str, Any], group_key: str) -> Iterator[tuple[dict[str, Any], dict[str, Any]]]:
    """Yield (group, concept) pairs for every conceptProperties entry."""
    for group in iter_concept_groups(data, group_key):
        for concept in group.get("conceptProperties") or []:
            yield group, concept


class TerminologyResolver:
    """Resolve drug identifiers and related concepts through RxNav.

    Attributes:
        client: RxNav HTTP client used for every request
    """

    def __init__(self, client: RxNavClient):
        self.client = client

    async def search(self, drug_name: str) -> dict[str, Any]:
        """Raw /drugs.json search result for a drug name."""
        return await self.client.fetch_json("/drugs.json", {"name": drug_name})

    async def resolve_rxcui(self, drug_identifier: str) -> str | None:
        """Resolve a drug name or RxCUI to an RxCUI.

        Numeric identifiers are returned unchanged. Names are searched and the
        first concept of the first non-empty concept group wins.

        Returns:
            RxCUI string, or None when no concept matches the name
        """
        if is_rxcui(drug_identifier):
            return drug_identifier

        data = await self.search(drug_identifier)
        for _, concept in iter_concepts(data, "drugGroup"):
            rxcui = concept.get("rxcui")
            if rxcui:
                logger.debug(f"Resolved '{drug_identifier}' to RxCUI {rxcui}")
                return rxcui

        logger.info(f"No RxCUI found for '{drug_identifier}'")
        return None

    async def resolve_ingredient_rxcui(self, generic_name: str) -> str | None:
        """Resolve a generic name, preferring an ingredient (IN/PIN) concept."""
        data = await self.search(generic_name)
        concepts = list(iter_concepts(data, "drugGroup"))

        for group, concept in concepts:
            if group.get("tty") in ("IN", "PIN") and concept.get("rxcui"):
                return concept["rxcui"]

        for _, concept in concepts:
            if concept.get("rxcui"):
                return concept["rxcui"]

        return None

    async def related_concepts(self, rxcui: str, term_types: list[str]) -> list[dict[str, Any]]:
        """Concepts related to an RxCUI, restricted to the given term types."""
        data = await self.client.fetch_json(
            f"/rxcui/{rxcui}/related.json", {"tty": " ".join(term_types)}
        )
        return [concept for _, concept in iter_concepts(data, "relatedGroup")]

    async def all_related_concepts(self, rxcui: str, term_types: list[str]) -> list[dict[str, Any]]:
        """Concepts from /allrelated.json whose group term type is in term_types."""
        data = await self.client.fetch_json(f"/rxcui/{rxcui}/allrelated.json")
        return [
            concept
            for group, concept in iter_concepts(data, "allRelatedGroup")
            if group.get("tty") in term_types
        ]

    async def all_properties(self, rxcui: str) -> list[dict[str, Any]]:
        """All property entries ({propCategory, propName, propValue}) of an RxCUI."""
        data = await self.client.fetch_json(f"/rxcui/{rxcui}/allProperties.json", {"prop": "all"})
        return list((data.get("propConceptGroup") or {}).get("propConcept") or [])

    async def property_values(self, rxcui: str, prop_name: str) -> list[str]:
        """Values of a single named property, e.g. every ATC code of an RxCUI."""
        data = await self.client.fetch_json(
            f"/rxcui/{rxcui}/property.json", {"propName": prop_name}
        )
        props = (data.get("propConceptGroup") or {}).get("propConcept") or []
        return [
            prop["propValue"]
            for prop in props
            if prop.get("propName") == prop_name and prop.get("propValue")
        ]
