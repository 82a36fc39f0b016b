"""QuestionRepositoryClient tests: merging, caching, degradation, retry."""

import asyncio

import pytest

from feedback_engine.errors import QuestionFetchError
from feedback_engine.questions import QuestionRepositoryClient, merge_questions
from feedback_engine.retry import RetryPolicy

from helpers.mocks import ALWAYS, MockQuestionSource, rating, text


def _source():
    return MockQuestionSource([
        rating("g2", "product", order=2),
        rating("g1", "product", order=1),
        text("p1_a", "product", product_id="p1", order=1),
        text("p2_a", "product", product_id="p2", order=0),
        rating("d1", "delivery", order=1),
    ])


@pytest.fixture
def client_source():
    return _source()


@pytest.fixture
def client(client_source):
    return QuestionRepositoryClient(client_source, RetryPolicy(base_delay=0.0))


# =====================================================================
# merge_questions
# =====================================================================


class TestMergeQuestions:

    def test_stable_sort_keeps_globals_first_on_ties(self):
        g = rating("g", order=1)
        s = text("s", product_id="p1", order=1)
        merged = merge_questions([g], [s], "p1")
        assert [q.id for q in merged] == ["g", "s"], "Ties should keep globals first"

    def test_drops_duplicates_and_foreign_products(self):
        g = rating("g", order=1)
        own = text("own", product_id="p1", order=2)
        other = text("other", product_id="p2", order=0)
        merged = merge_questions([g], [g, own, other], "p1")
        assert [q.id for q in merged] == ["g", "own"]


# =====================================================================
# fetch_questions
# =====================================================================


class TestFetchQuestions:

    @pytest.mark.asyncio
    async def test_product_questions_merged_and_ordered(self, client):
        questions = await client.fetch_questions("product", "p1")
        assert [q.id for q in questions] == ["g1", "p1_a", "g2"], (
            "Expected globals and p1 questions ordered by order_index"
        )

    @pytest.mark.asyncio
    async def test_general_category_fetches_globals_only(self, client, client_source):
        questions = await client.fetch_questions("delivery")
        assert [q.id for q in questions] == ["d1"]
        assert client_source.count("product", "delivery", None) == 0, (
            "General sections should not call the product-scoped method"
        )

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, client):
        with pytest.raises(ValueError):
            await client.fetch_questions("marketing")

    @pytest.mark.asyncio
    async def test_second_fetch_served_from_cache(self, client, client_source):
        await client.fetch_questions("product", "p1")
        await client.fetch_questions("product", "p1")
        assert client_source.count("global", "product") == 1, "Cache miss on second fetch"
        assert client.is_cached("product", "p1")

    @pytest.mark.asyncio
    async def test_concurrent_fetches_share_one_load(self, client, client_source):
        client_source.gate = asyncio.Event()
        first = asyncio.ensure_future(client.fetch_questions("product", "p2"))
        second = asyncio.ensure_future(client.fetch_questions("product", "p2"))
        await asyncio.sleep(0)
        assert client.is_inflight("product", "p2"), "Load should be in flight"

        client_source.gate.set()
        a, b = await asyncio.gather(first, second)
        assert [q.id for q in a] == [q.id for q in b]
        assert client_source.count("product", "product", "p2") == 1, (
            "Concurrent fetches for the same key must collapse into one call"
        )

    @pytest.mark.asyncio
    async def test_returned_lists_are_copies(self, client):
        first = await client.fetch_questions("delivery")
        first.clear()
        again = await client.fetch_questions("delivery")
        assert len(again) == 1, "Mutating a result must not affect the cache"


# =====================================================================
# Failures
# =====================================================================


class TestFetchFailures:

    @pytest.mark.asyncio
    async def test_product_failure_degrades_to_globals(self, client, client_source):
        client_source.failing_products.add("p1")
        questions = await client.fetch_questions("product", "p1")
        assert [q.id for q in questions] == ["g1", "g2"], (
            "Failed product fetch should fall back to global questions"
        )

    @pytest.mark.asyncio
    async def test_degraded_result_not_cached(self, client, client_source):
        client_source.failing_products.add("p1")
        await client.fetch_questions("product", "p1")
        assert not client.is_cached("product", "p1")

        client_source.failing_products.clear()
        questions = await client.fetch_questions("product", "p1")
        assert "p1_a" in [q.id for q in questions], "Recovered fetch should include p1 questions"

    @pytest.mark.asyncio
    async def test_transient_global_failure_retried(self, client, client_source):
        client_source.global_failures["delivery"] = 2
        questions = await client.fetch_questions("delivery")
        assert [q.id for q in questions] == ["d1"]
        assert client_source.count("global", "delivery") == 3, "Expected 3 attempts"

    @pytest.mark.asyncio
    async def test_persistent_global_failure_raises(self, client, client_source):
        client_source.global_failures["delivery"] = ALWAYS
        with pytest.raises(QuestionFetchError) as exc_info:
            await client.fetch_questions("delivery")
        assert exc_info.value.category == "delivery"
        assert client_source.count("global", "delivery") == 3, "Retries are bounded"
        assert not client.is_inflight("delivery"), "Failed load must leave in-flight map"

    @pytest.mark.asyncio
    async def test_clear_drops_cache(self, client, client_source):
        await client.fetch_questions("delivery")
        client.clear()
        assert not client.is_cached("delivery")
        await client.fetch_questions("delivery")
        assert client_source.count("global", "delivery") == 2


# =====================================================================
# RetryPolicy
# =====================================================================


class TestRetryPolicy:

    def test_delays_double(self):
        policy = RetryPolicy()
        assert [policy.delay_for(n) for n in (1, 2)] == [1.0, 2.0]

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    @pytest.mark.asyncio
    async def test_reraises_last_error(self):
        calls = []

        async def op():
            calls.append(1)
            raise KeyError(len(calls))

        with pytest.raises(KeyError) as exc_info:
            await RetryPolicy(max_attempts=2, base_delay=0.0).run(op)
        assert exc_info.value.args == (2,), "Last exception should propagate"
        assert len(calls) == 2
