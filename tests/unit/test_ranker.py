"""Unit tests for keyword ranking."""

import pytest

from rxnav_mcp.exceptions import ConfigurationError
from rxnav_mcp.rag.models import RankedChunk, TextChunk
from rxnav_mcp.rag.ranker import (
    CLASSIFICATION_KEYWORDS,
    KeywordScorer,
    MetadataBoost,
    build_keywords,
    default_scorer,
    rank_chunks,
    tokenize,
)


def make_chunk(index: int, text: str, **metadata) -> TextChunk:
    return TextChunk(
        id=f"src_{index}",
        source_id="src",
        text=text,
        start_offset=index * 10,
        end_offset=index * 10 + len(text),
        metadata=metadata,
    )


@pytest.mark.unit
class TestKeywords:
    def test_tokenize_splits_on_non_alphanumerics(self):
        assert tokenize("ATC-classification, aspirin_81mg") == [
            "atc",
            "classification",
            "aspirin",
            "81mg",
        ]

    def test_tokenize_empty(self):
        assert tokenize(None) == []
        assert tokenize("  ") == []

    def test_build_keywords_dedupes_and_lowercases(self):
        keywords = build_keywords("ATC atc Aspirin", ["ATC", " Brand ", ""])

        assert keywords == ["atc", "aspirin", "brand"]

    def test_build_keywords_keeps_cjk_terms(self):
        assert build_keywords(None, ["通用名", "成分"]) == ["通用名", "成分"]


@pytest.mark.unit
class TestRankChunks:
    """Ordering, bounds and fallbacks."""

    def test_more_atc_mentions_rank_first(self):
        once = make_chunk(0, "ATC Code: N02BA01")
        three_times = make_chunk(1, "ATC Code: N02BA01 | ATC Code: B01AC06 | ATC level 5")

        ranked = rank_chunks([once, three_times], "ATC classification", top_k=2)

        assert [chunk.id for chunk in ranked] == ["src_1", "src_0"]
        assert ranked[0].score > ranked[1].score

    def test_scores_count_substring_occurrences(self):
        chunk = make_chunk(0, "aspirin; Aspirin; ASPIRIN tablets")

        ranked = rank_chunks([chunk], "aspirin", top_k=1, scorer=KeywordScorer())

        assert ranked[0].score == 3.0

    def test_equal_scores_keep_input_order(self):
        chunks = [make_chunk(i, f"aspirin entry {i}") for i in range(6)]

        ranked = rank_chunks(chunks, "aspirin", top_k=6)

        assert [chunk.id for chunk in ranked] == [chunk.id for chunk in chunks]

    def test_no_keywords_falls_back_to_input_order(self):
        chunks = [make_chunk(i, text) for i, text in enumerate(["b", "aspirin", "c", "d"])]

        ranked = rank_chunks(chunks, None, top_k=3, extra_keywords=[])

        assert [chunk.id for chunk in ranked] == ["src_0", "src_1", "src_2"]
        assert all(chunk.score == 0.0 for chunk in ranked)

    @pytest.mark.parametrize("top_k", [1, 2, 5, 10])
    def test_top_k_bound(self, top_k):
        chunks = [make_chunk(i, f"generic name {i}") for i in range(5)]

        ranked = rank_chunks(chunks, "generic", top_k=top_k)

        assert len(ranked) == min(top_k, len(chunks))

    def test_empty_chunks(self):
        assert rank_chunks([], "aspirin", top_k=5) == []

    @pytest.mark.parametrize("top_k", [0, -1])
    def test_invalid_top_k(self, top_k):
        with pytest.raises(ConfigurationError):
            rank_chunks([make_chunk(0, "aspirin")], "aspirin", top_k=top_k)

    def test_returns_ranked_chunks_with_provenance(self):
        chunk = make_chunk(2, "brand: Bayer", type="brand")

        (ranked,) = rank_chunks([chunk], "brand", top_k=1)

        assert isinstance(ranked, RankedChunk)
        assert ranked.id == "src_2"
        assert ranked.start_offset == 20
        assert ranked.metadata == {"type": "brand"}

    def test_reranking_ranked_chunks(self):
        first = rank_chunks([make_chunk(0, "aspirin")], "aspirin", top_k=1)

        again = rank_chunks(first, "aspirin aspirin", top_k=1)

        assert again[0].id == "src_0"

    def test_extra_keywords_contribute(self):
        plain = make_chunk(0, "Query: aspirin")
        tagged = make_chunk(1, "Query: aspirin, RxCUI: 1191")

        ranked = rank_chunks([plain, tagged], "aspirin", top_k=2, extra_keywords=["rxcui"])

        assert ranked[0].id == "src_1"


@pytest.mark.unit
class TestMetadataBoost:
    """The ATC boost only separates equal raw counts."""

    def test_boost_breaks_ties_in_favour_of_atc_chunks(self):
        untagged = make_chunk(0, "classification pending", has_atc=False)
        tagged = make_chunk(1, "classification N02BA01", has_atc=True)

        ranked = rank_chunks([untagged, tagged], "classification", top_k=2)

        assert [chunk.id for chunk in ranked] == ["src_1", "src_0"]
        assert ranked[0].score == pytest.approx(1.5)

    def test_boost_never_overrides_higher_raw_count(self):
        tagged = make_chunk(0, "ATC", has_atc=True)
        untagged = make_chunk(1, "ATC atc", has_atc=False)

        ranked = rank_chunks([tagged, untagged], "atc", top_k=2, scorer=default_scorer(0.99))

        assert ranked[0].id == "src_1"

    def test_boost_scales_with_share_of_classification_hits(self):
        chunk = make_chunk(0, "atc aspirin aspirin aspirin", has_atc=True)
        scorer = default_scorer(0.5)

        score = scorer.score(chunk, ["atc", "aspirin"])

        assert score == pytest.approx(4 + 0.5 * 1 / 4)

    def test_no_hits_scores_zero(self):
        chunk = make_chunk(0, "nothing relevant", has_atc=True)

        assert default_scorer().score(chunk, ["atc"]) == 0.0

    @pytest.mark.parametrize("weight", [-0.1, 1.0, 2.5])
    def test_weight_must_be_below_one(self, weight):
        with pytest.raises(ConfigurationError):
            MetadataBoost("has_atc", CLASSIFICATION_KEYWORDS, weight)

    def test_custom_scorer_is_used(self):
        class LengthScorer:
            def score(self, chunk, keywords):
                return float(len(chunk.text))

        chunks = [make_chunk(0, "a"), make_chunk(1, "abc"), make_chunk(2, "ab")]

        ranked = rank_chunks(chunks, "x", top_k=3, scorer=LengthScorer())

        assert [chunk.id for chunk in ranked] == ["src_1", "src_2", "src_0"]
