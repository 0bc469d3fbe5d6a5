"""Tests for the similarity ranker."""

import pytest
from helpers import make_assistant_turn, make_user_turn

from semantic_context.services.ranking import SimilarityRanker, cosine_similarity, jaccard, tokenize


@pytest.fixture
def ranker() -> SimilarityRanker:
    return SimilarityRanker()


class TestLexicalScoring:
    """Tests for the token helpers."""

    def test_tokenize_lowercases_and_drops_punctuation(self) -> None:
        assert tokenize("Hello, World! hello") == {"hello", "world"}

    def test_jaccard_overlap(self) -> None:
        assert jaccard({"i", "like", "cats"}, {"tell", "me", "about", "cats"}) == pytest.approx(1 / 6)

    def test_jaccard_empty_sets(self) -> None:
        assert jaccard(set(), {"cats"}) == 0.0


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors(self) -> None:
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)

    def test_opposed_vectors_clamped_to_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == 0.0

    def test_zero_vector(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


class TestRank:
    """Tests for SimilarityRanker.rank."""

    def test_empty_candidates(self, ranker: SimilarityRanker) -> None:
        assert ranker.rank("anything", [], top_k=5) == []

    def test_non_positive_top_k(self, ranker: SimilarityRanker) -> None:
        turns = [make_user_turn("1", "cats")]
        assert ranker.rank("cats", turns, top_k=0) == []

    def test_never_exceeds_top_k(self, ranker: SimilarityRanker) -> None:
        turns = [make_user_turn(str(i), f"message {i}", minutes=i) for i in range(20)]
        assert len(ranker.rank("message", turns, top_k=7)) == 7

    def test_cats_ranked_above_weather(self, ranker: SimilarityRanker) -> None:
        turns = [
            make_user_turn("1", "I like cats", minutes=0),
            make_user_turn("2", "I like dogs", minutes=1),
            make_user_turn("3", "The weather is nice", minutes=2),
        ]

        results = ranker.rank("tell me about cats", turns, top_k=2)

        assert results[0].turn.id == "1"
        assert results[0].score == pytest.approx(1 / 6)
        assert results[1].score == 0.0

    def test_recency_breaks_score_ties(self, ranker: SimilarityRanker) -> None:
        turns = [
            make_user_turn("old", "cats", minutes=0),
            make_user_turn("new", "cats", minutes=5),
        ]

        results = ranker.rank("cats", turns, top_k=2)

        assert [r.turn.id for r in results] == ["new", "old"]

    def test_input_order_does_not_change_result(self, ranker: SimilarityRanker) -> None:
        turns = [
            make_user_turn("a", "cats are great", minutes=1),
            make_user_turn("b", "cats are great", minutes=1),
            make_user_turn("c", "dogs are great", minutes=1),
            make_user_turn("d", "nothing here", minutes=2),
        ]

        forward = ranker.rank("cats", turns, top_k=3)
        backward = ranker.rank("cats", list(reversed(turns)), top_k=3)

        assert [r.turn.id for r in forward] == [r.turn.id for r in backward]
        assert [r.turn.id for r in forward][:2] == ["a", "b"]

    def test_query_vector_ignored_without_candidate_vectors(self, ranker: SimilarityRanker) -> None:
        turns = [
            make_user_turn("1", "I like cats", minutes=0),
            make_user_turn("2", "The weather is nice", minutes=1),
        ]

        lexical = ranker.rank("cats", turns, top_k=2)
        with_vector = ranker.rank("cats", turns, top_k=2, query_vector=[1.0, 0.0, 0.0])

        assert lexical == with_vector

    def test_vector_path_orders_by_cosine(self, ranker: SimilarityRanker) -> None:
        turns = [
            make_user_turn("near", "unrelated words", vector=[1.0, 0.1], minutes=0),
            make_user_turn("far", "unrelated words", vector=[0.1, 1.0], minutes=1),
        ]

        results = ranker.rank("query", turns, top_k=2, query_vector=[1.0, 0.0])

        assert [r.turn.id for r in results] == ["near", "far"]
        assert results[0].score > results[1].score

    def test_single_path_scores_are_raw(self, ranker: SimilarityRanker) -> None:
        turns = [make_user_turn("1", "x", vector=[1.0, 1.0])]

        results = ranker.rank("query", turns, top_k=1, query_vector=[1.0, 0.0])

        assert results[0].score == pytest.approx(0.7071, abs=1e-4)

    def test_mixed_paths_are_normalized_per_path(self, ranker: SimilarityRanker) -> None:
        turns = [
            make_user_turn("vec-best", "a", vector=[1.0, 1.0], minutes=0),
            make_user_turn("vec-worse", "b", vector=[0.0, 1.0], minutes=1),
            make_assistant_turn("lex-best", "cats and dogs", minutes=2),
            make_assistant_turn("lex-worse", "cats and birds and fish", minutes=3),
        ]

        results = ranker.rank("cats dogs", turns, top_k=4, query_vector=[1.0, 0.0])
        scores = {r.turn.id: r.score for r in results}

        assert scores["vec-best"] == pytest.approx(1.0)
        assert scores["lex-best"] == pytest.approx(1.0)
        assert scores["vec-worse"] == 0.0
        assert 0.0 < scores["lex-worse"] < 1.0
        # equal normalized scores fall back to recency
        assert [r.turn.id for r in results][:2] == ["lex-best", "vec-best"]

    def test_mismatched_vector_length_uses_lexical(self, ranker: SimilarityRanker) -> None:
        turns = [
            make_user_turn("short", "cats", vector=[1.0], minutes=0),
            make_user_turn("ok", "nothing", vector=[1.0, 0.0], minutes=1),
        ]

        results = ranker.rank("cats", turns, top_k=2, query_vector=[1.0, 0.0])
        scores = {r.turn.id: r.score for r in results}

        assert scores["short"] == pytest.approx(1.0)
        assert scores["ok"] == pytest.approx(1.0)

    def test_scores_within_unit_interval(self, ranker: SimilarityRanker) -> None:
        turns = [
            make_user_turn("1", "cats", vector=[-1.0, 0.0]),
            make_user_turn("2", "dogs"),
        ]

        results = ranker.rank("cats", turns, top_k=2, query_vector=[1.0, 0.0])

        assert all(0.0 <= r.score <= 1.0 for r in results)
