"""QuestionRepositoryClient — cached, retrying access to the question catalog.

Wraps a :class:`~feedback_engine.interfaces.QuestionSource` and adds:

  - merging of category-global and product-specific questions, stably
    sorted by ``order_index``
  - graceful degradation to global-only questions when the product-specific
    call fails
  - a per-session cache keyed by ``(category, product_id)``
  - collapsing of concurrent fetches for the same key into one in-flight task
  - bounded retry of every collaborator call (:class:`RetryPolicy`)

Usage::

    client = QuestionRepositoryClient(source)
    questions = await client.fetch_questions("product", "prod-42")
"""

from __future__ import annotations

import asyncio
import logging

from feedback_engine.constants import CATEGORIES
from feedback_engine.errors import QuestionFetchError
from feedback_engine.interfaces import QuestionSource
from feedback_engine.models.question import BaseQuestion
from feedback_engine.retry import RetryPolicy

logger = logging.getLogger(__name__)

CacheKey = tuple[str, "str | None"]


def merge_questions(
    global_questions: list[BaseQuestion],
    scoped_questions: list[BaseQuestion],
    product_id: str,
) -> list[BaseQuestion]:
    """Union of global and ``product_id``-scoped questions, sorted by order_index.

    Duplicates (by id) are dropped so sources that already return the union
    merge cleanly.  ``sorted`` is stable: ties keep globals first, then
    product-specific questions, each in source order.
    """
    merged = [q for q in global_questions if q.is_global]
    seen = {q.id for q in merged}
    for q in scoped_questions:
        if q.product_id == product_id and q.id not in seen:
            merged.append(q)
            seen.add(q.id)
    return sorted(merged, key=lambda q: q.order_index)


class QuestionRepositoryClient:
    """Session-scoped question fetcher with caching and in-flight collapse.

    Args:
        source: the question catalog collaborator
        retry_policy: retry policy for each collaborator call
    """

    def __init__(
        self,
        source: QuestionSource,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._source = source
        self._retry = retry_policy or RetryPolicy()
        self._cache: dict[CacheKey, list[BaseQuestion]] = {}
        self._inflight: dict[CacheKey, asyncio.Task] = {}
        # Bumped by clear(); loads started under an older generation never
        # write to the cache.
        self._generation = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_cached(self, category: str, product_id: str | None = None) -> bool:
        return (category, product_id) in self._cache

    def is_inflight(self, category: str, product_id: str | None = None) -> bool:
        return (category, product_id) in self._inflight

    async def fetch_questions(
        self, category: str, product_id: str | None = None
    ) -> list[BaseQuestion]:
        """Return the ordered questions for ``category`` (and ``product_id``).

        Raises:
            ValueError: unknown category
            QuestionFetchError: the category's global questions could not
                be fetched after all retries
        """
        if category not in CATEGORIES:
            raise ValueError(f"Unknown question category: {category!r}")

        key: CacheKey = (category, product_id)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(
                self._load(key, self._generation)
            )
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._on_done(k, t))

        # Shield so that a cancelled waiter (e.g. a prefetch) does not cancel
        # the shared load other waiters depend on.
        questions = await asyncio.shield(task)
        return list(questions)

    def clear(self) -> None:
        """Drop the cache and forget in-flight loads (session ended)."""
        self._generation += 1
        self._cache.clear()
        self._inflight.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_done(self, key: CacheKey, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception as retrieved; waiters re-raise it themselves
        if not task.cancelled():
            task.exception()

    async def _load(self, key: CacheKey, generation: int) -> list[BaseQuestion]:
        category, product_id = key
        questions, complete = await self._fetch(category, product_id)
        # Degraded results are not cached so the next demand retries the
        # product-specific call.
        if complete and generation == self._generation:
            self._cache[key] = questions
        return questions

    async def _fetch(
        self, category: str, product_id: str | None
    ) -> tuple[list[BaseQuestion], bool]:
        """Return (questions, complete) where complete=False means degraded."""
        if product_id is None:
            return await self._fetch_global(category), True

        global_result, scoped_result = await asyncio.gather(
            self._fetch_global(category),
            self._retry.run(
                lambda: self._source.get_questions_by_category_and_product(
                    category, product_id
                ),
                description=f"{category}/{product_id} questions",
            ),
            return_exceptions=True,
        )

        for result in (global_result, scoped_result):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        if isinstance(global_result, Exception):
            raise global_result

        if isinstance(scoped_result, Exception):
            logger.warning(
                "Product-specific questions unavailable for %s/%s, "
                "falling back to %d global questions: %s",
                category, product_id, len(global_result), scoped_result,
            )
            return merge_questions(global_result, [], product_id), False

        questions = merge_questions(global_result, scoped_result, product_id)
        logger.debug(
            "Fetched %d questions for %s/%s", len(questions), category, product_id,
        )
        return questions, True

    async def _fetch_global(self, category: str) -> list[BaseQuestion]:
        try:
            questions = await self._retry.run(
                lambda: self._source.get_questions_by_category(category),
                description=f"{category} questions",
            )
        except Exception as exc:
            raise QuestionFetchError(category, None, exc) from exc
        return sorted(questions, key=lambda q: q.order_index)
