"""Tests for the concurrent insight fan-out."""

from __future__ import annotations

import asyncio
import threading

from second_opinion.insights.aggregator import InsightAggregator
from second_opinion.insights.reasoning import InsightError
from second_opinion.models import InsightBundle


class _Reasoning:
    def __init__(self, result: object = "Check for null values.", error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def analyze(self, error: str, language: str):
        self.calls.append((error, language))
        if self.error is not None:
            raise self.error
        return self.result


class _Search:
    def __init__(self, result: object = "Question: Why?", error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.queries: list[str] = []

    def search(self, query: str):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.result


def test_aggregate_combines_both_sources() -> None:
    reasoning = _Reasoning("  Check for null values.\n")
    search = _Search()

    bundle = asyncio.run(InsightAggregator(reasoning, search).aggregate("TypeError: x", "JavaScript"))

    assert bundle == InsightBundle(reasoning_insight="Check for null values.", search_insight="Question: Why?")
    assert reasoning.calls == [("TypeError: x", "JavaScript")]
    assert search.queries == ["TypeError: x JavaScript"]


def test_reasoning_failure_leaves_search_untouched() -> None:
    aggregator = InsightAggregator(_Reasoning(error=InsightError("401")), _Search())

    bundle = asyncio.run(aggregator.aggregate("boom", "Python"))

    assert bundle.reasoning_insight == ""
    assert bundle.search_insight == "Question: Why?"


def test_search_failure_leaves_reasoning_untouched() -> None:
    aggregator = InsightAggregator(_Reasoning(), _Search(error=TimeoutError("slow")))

    bundle = asyncio.run(aggregator.aggregate("boom", "Python"))

    assert bundle.reasoning_insight == "Check for null values."
    assert bundle.search_insight == ""


def test_malformed_results_are_treated_as_empty() -> None:
    aggregator = InsightAggregator(_Reasoning(result={"choices": []}), _Search(result=None))

    bundle = asyncio.run(aggregator.aggregate("boom", "Python"))

    assert bundle == InsightBundle()


def test_disabled_sources_contribute_nothing() -> None:
    bundle = asyncio.run(InsightAggregator().aggregate("boom", "Unknown"))

    assert bundle == InsightBundle()


def test_sources_run_concurrently() -> None:
    barrier = threading.Barrier(2, timeout=5)

    class _Waiting:
        def analyze(self, error: str, language: str) -> str:
            barrier.wait()
            return "reasoning"

        def search(self, query: str) -> str:
            barrier.wait()
            return "search"

    source = _Waiting()
    bundle = asyncio.run(InsightAggregator(source, source).aggregate("boom", "Go"))

    assert bundle == InsightBundle(reasoning_insight="reasoning", search_insight="search")
