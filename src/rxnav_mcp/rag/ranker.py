"""Keyword ranking of chunks against a query.

Scoring sits behind the ChunkScorer protocol so another strategy can be
swapped in without touching chunking or summarization. The default
KeywordScorer counts case-insensitive keyword occurrences and may add a
metadata boost strictly below 1.0, which only ever separates chunks whose
raw counts are equal.
"""

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from rxnav_mcp.exceptions import ConfigurationError
from rxnav_mcp.rag.models import RankedChunk, TextChunk

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"[^\W_]+")

# Keywords that an ATC-tagged chunk is expected to answer well
CLASSIFICATION_KEYWORDS = frozenset(
    {
        "atc",
        "classification",
        "therapeutic",
        "anatomical",
        "chemical",
        "substance",
        "pharmacological",
        "分类",
        "治疗",
    }
)

DEFAULT_ATC_BOOST_WEIGHT = 0.5


def tokenize(text: str | None) -> list[str]:
    """Lower-cased alphanumeric tokens, split on any non-alphanumeric character."""
    if not text:
        return []
    return TOKEN_PATTERN.findall(text.lower())


def build_keywords(query: str | None, extra_keywords: Iterable[str] = ()) -> list[str]:
    """Query tokens followed by extra keywords, lower-cased and de-duplicated."""
    keywords = tokenize(query)
    keywords.extend(keyword.strip().lower() for keyword in extra_keywords)
    return [keyword for keyword in dict.fromkeys(keywords) if keyword]


class ChunkScorer(Protocol):
    """Assigns a non-negative relevance score to a chunk."""

    def score(self, chunk: TextChunk, keywords: Sequence[str]) -> float: ...


@dataclass(frozen=True)
class MetadataBoost:
    """Boost for chunks whose metadata flag is truthy.

    The boost is weight * (hinted keyword hits / all keyword hits), so with
    0 <= weight < 1 it stays below one raw match.
    """

    flag: str
    keywords: frozenset[str]
    weight: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.weight < 1.0:
            raise ConfigurationError(
                message="Metadata boost weight must be in [0, 1)",
                details={"flag": self.flag, "weight": self.weight},
            )


class KeywordScorer:
    """Count keyword occurrences (case-insensitive substring matches)."""

    def __init__(self, boosts: Sequence[MetadataBoost] = ()):
        self.boosts = tuple(boosts)

    def score(self, chunk: TextChunk, keywords: Sequence[str]) -> float:
        text = chunk.text.lower()
        hits = {keyword: text.count(keyword) for keyword in keywords}
        raw_count = sum(hits.values())
        if raw_count == 0:
            return 0.0

        bonus = 0.0
        for boost in self.boosts:
            if not chunk.metadata.get(boost.flag):
                continue
            hinted = sum(count for keyword, count in hits.items() if keyword in boost.keywords)
            bonus = max(bonus, boost.weight * hinted / raw_count)

        return raw_count + bonus


def default_scorer(atc_boost_weight: float = DEFAULT_ATC_BOOST_WEIGHT) -> KeywordScorer:
    """KeywordScorer that favours ATC-tagged chunks on classification keywords."""
    return KeywordScorer(
        boosts=[MetadataBoost("has_atc", CLASSIFICATION_KEYWORDS, atc_boost_weight)]
    )


def rank_chunks(
    chunks: Sequence[TextChunk],
    query: str | None,
    top_k: int,
    extra_keywords: Iterable[str] = (),
    scorer: ChunkScorer | None = None,
) -> list[RankedChunk]:
    """Return the top_k chunks by descending score.

    Ties keep the input order. With neither query tokens nor extra keywords
    every chunk scores 0, so the first top_k chunks come back in input order.

    Args:
        chunks: Candidate chunks in source order
        query: Free-text query, tokenized on non-alphanumeric boundaries
        top_k: Maximum number of chunks to return
        extra_keywords: Additional keywords unioned with the query tokens
        scorer: Scoring strategy (defaults to default_scorer())

    Returns:
        At most min(top_k, len(chunks)) ranked chunks

    Raises:
        ConfigurationError: If top_k <= 0
    """
    if top_k <= 0:
        raise ConfigurationError(message="top_k must be positive", details={"top_k": top_k})

    keywords = build_keywords(query, extra_keywords)
    scorer = scorer or default_scorer()

    if keywords:
        scored = [(scorer.score(chunk, keywords), chunk) for chunk in chunks]
    else:
        logger.debug("No ranking keywords; keeping original chunk order")
        scored = [(0.0, chunk) for chunk in chunks]

    # sorted() is stable, including with reverse=True
    scored = sorted(scored, key=lambda item: item[0], reverse=True)[:top_k]

    logger.debug(
        f"Ranked {len(chunks)} chunks with {len(keywords)} keywords; "
        f"top scores {[round(score, 3) for score, _ in scored]}"
    )
    return [
        RankedChunk(**chunk.model_dump(exclude={"score"}), score=score) for score, chunk in scored
    ]
