"""
Unit tests for retrieval metrics and the per-query evaluator.
"""

import math

import pytest

from retrieval_bench.packages.evaluation_framework import Evaluator, Query
from retrieval_bench.packages.evaluation_framework.metrics import (
    mean,
    ndcg_at_k,
    p95,
    precision_at_k,
    recall_at_k,
    reciprocal_rank,
)

RETRIEVED = ["a", "b", "c", "d", "e"]


class TestPrecisionRecall:

    def test_single_hit_at_rank_three(self):
        assert precision_at_k(RETRIEVED, {"c"}, 5) == pytest.approx(0.2)
        assert recall_at_k(RETRIEVED, {"c"}, 5) == pytest.approx(1.0)

    def test_short_list_still_divides_by_k(self):
        assert precision_at_k(["a"], {"a"}, 5) == pytest.approx(0.2)

    def test_only_first_k_count(self):
        assert precision_at_k(RETRIEVED, {"e"}, 3) == 0.0
        assert recall_at_k(RETRIEVED, {"e"}, 3) == 0.0

    def test_disjoint_sets_score_zero(self):
        assert precision_at_k(RETRIEVED, {"x", "y"}, 5) == 0.0
        assert recall_at_k(RETRIEVED, {"x", "y"}, 5) == 0.0

    def test_empty_relevant_recall_is_zero(self):
        assert recall_at_k(RETRIEVED, set(), 5) == 0.0
        assert precision_at_k(RETRIEVED, set(), 5) == 0.0

    def test_partial_recall(self):
        assert recall_at_k(RETRIEVED, {"a", "z"}, 5) == pytest.approx(0.5)

    def test_bounded(self):
        for relevant in [set(), {"a"}, {"a", "b", "c", "d", "e", "f"}]:
            for k in range(1, 8):
                assert 0.0 <= precision_at_k(RETRIEVED, relevant, k) <= 1.0
                assert 0.0 <= recall_at_k(RETRIEVED, relevant, k) <= 1.0


class TestReciprocalRank:

    def test_first_item_relevant(self):
        assert reciprocal_rank(RETRIEVED, {"a"}) == 1.0

    def test_third_item_relevant(self):
        assert reciprocal_rank(RETRIEVED, {"c"}) == pytest.approx(1 / 3)

    def test_uses_full_list(self):
        assert reciprocal_rank(RETRIEVED, {"e"}) == pytest.approx(0.2)

    def test_no_hit(self):
        assert reciprocal_rank(RETRIEVED, {"z"}) == 0.0
        assert reciprocal_rank([], {"a"}) == 0.0


class TestNdcg:

    def test_hit_at_rank_three(self):
        # (1 / log2(4)) / (1 / log2(2))
        assert ndcg_at_k(RETRIEVED, {"c"}, 5) == pytest.approx(0.5)

    def test_perfect_ranking(self):
        assert ndcg_at_k(["a", "b", "x"], {"a", "b"}, 5) == pytest.approx(1.0)

    def test_perfect_when_more_relevant_than_k(self):
        assert ndcg_at_k(["a", "b"], {"a", "b", "c", "d"}, 2) == pytest.approx(1.0)

    def test_no_hit_in_first_k(self):
        assert ndcg_at_k(RETRIEVED, {"e"}, 3) == 0.0

    def test_empty_relevant(self):
        assert ndcg_at_k(RETRIEVED, set(), 5) == 0.0

    def test_imperfect_order(self):
        expected = (1 / math.log2(3)) / (1 / math.log2(2) + 1 / math.log2(3))
        assert ndcg_at_k(["x", "a"], {"a", "b"}, 5) == pytest.approx(expected)


class TestLatencyStats:

    def test_p95_nearest_rank(self):
        values = [float(v) for v in range(20, 0, -1)]
        # floor(0.95 * 20) = 19 -> largest element
        assert p95(values) == 20.0

    def test_p95_small_sample(self):
        assert p95([5.0, 1.0, 3.0]) == 5.0
        assert p95([7.0]) == 7.0

    def test_p95_empty(self):
        assert p95([]) == 0.0

    def test_mean(self):
        assert mean([50.0, 150.0]) == 100.0

    def test_mean_empty_is_nan(self):
        assert math.isnan(mean([]))


class TestEvaluator:

    def test_score_query(self):
        query = Query(id="q", text="text", relevant_doc_ids=frozenset({"c"}))
        scores = Evaluator(k=5).score_query(query, RETRIEVED)

        assert scores.query_id == "q"
        assert scores.precision == pytest.approx(0.2)
        assert scores.recall == pytest.approx(1.0)
        assert scores.mrr == pytest.approx(1 / 3)
        assert scores.ndcg == pytest.approx(0.5)

    def test_summarize_averages_queries(self):
        evaluator = Evaluator(k=5)
        hit = Query(id="hit", text="t", relevant_doc_ids=frozenset({"a"}))
        miss = Query(id="miss", text="t", relevant_doc_ids=frozenset({"z"}))
        scores = [evaluator.score_query(hit, RETRIEVED), evaluator.score_query(miss, RETRIEVED)]

        metrics = evaluator.summarize(scores, [10.0, 30.0], indexing_time_ms=12.0)

        assert metrics.mrr == pytest.approx(0.5)
        assert metrics.precision_at_5 == pytest.approx(0.1)
        assert metrics.avg_latency_ms == pytest.approx(20.0)
        assert metrics.p95_latency_ms == 30.0
        assert metrics.indexing_time_ms == 12.0

    def test_rejects_non_positive_k(self):
        with pytest.raises(ValueError):
            Evaluator(k=0)
