# tests/test_relevance_index.py

from typing import List
from unittest.mock import MagicMock

import pytest

from exchange_index.application.relevance_index import RelevanceIndex, score_entry, tokenize_query
from exchange_index.domain.models import Entry


def _make_entry(
    entry_id: str,
    title: str = "",
    snippet: str = "",
    tags: List[str] = None,
    context: str = "",
    extra_text: str = "",
) -> Entry:
    tags = tags or []
    full_text = " ".join([title, extra_text, snippet, ",".join(tags), context]).lower()
    return Entry(
        id=entry_id,
        title=title,
        snippet=snippet,
        url=f"/#{entry_id}",
        full_text=full_text,
        tags=tags,
        context=context,
    )


def _make_index(*collections: List[Entry]) -> RelevanceIndex:
    extractor = MagicMock()
    extractor.extract.side_effect = list(collections)
    return RelevanceIndex(tree_provider=MagicMock(), extractor=extractor)


@pytest.fixture
def corpus() -> List[Entry]:
    return [
        _make_entry("tutors", title="Ethics of AI Tutors", snippet="Fairness in tutoring systems.",
                    tags=["ethics", "fairness"], context="AI Ethics"),
        _make_entry("attitudes", title="Student Attitudes Toward AI", snippet="Survey of 400 students.",
                    tags=["survey"], context="Student Perspectives"),
        _make_entry("evaluation", title="Evaluating Chatbots", snippet="Rubrics for evaluating tutors.",
                    tags=["evaluation", "tools"], context="Assessment"),
    ]


# ── Lifecycle ─────────────────────────────────────────────────────────────────

def test_not_ready_before_first_build():
    index = _make_index([])
    assert index.is_ready() is False


def test_first_query_triggers_build(corpus):
    index = _make_index(corpus)

    results = index.query("tutors")

    assert index.is_ready() is True
    assert results
    index._extractor.extract.assert_called_once()


def test_get_all_entries_builds_once_and_returns_copy(corpus):
    index = _make_index(corpus)

    entries = index.get_all_entries()
    entries.clear()

    assert len(index.get_all_entries()) == 3
    index._extractor.extract.assert_called_once()


def test_rebuild_replaces_collection(corpus):
    index = _make_index(corpus[:1], corpus)
    index.build()
    assert len(index.get_all_entries()) == 1

    index.rebuild_index()

    assert len(index.get_all_entries()) == 3


def test_registry_provider_receives_current_tree(corpus):
    tree = MagicMock()
    registry = MagicMock()
    extractor = MagicMock()
    extractor.extract.return_value = corpus
    index = RelevanceIndex(
        tree_provider=lambda: tree,
        extractor=extractor,
        registry_provider=lambda t: registry,
    )

    index.build()

    extractor.extract.assert_called_once_with(tree, registry)


# ── Degenerate queries ────────────────────────────────────────────────────────

@pytest.mark.parametrize("query", ["", "   ", "\n\t", None])
def test_empty_queries_return_nothing(corpus, query):
    index = _make_index(corpus)
    assert index.get_relevant_entries(query, 5) == []


def test_non_positive_k_returns_nothing(corpus):
    index = _make_index(corpus)
    assert index.query("tutors", 0) == []


def test_regex_metacharacters_are_matched_literally():
    entry = _make_entry("cpp", title="Teaching C++ (AI) tutors")
    index = _make_index([entry])

    results = index.query("c++ (ai)")

    assert [r.entry.id for r in results] == ["cpp"]
    assert index.query("[unclosed *?") == []


def test_trailing_punctuation_stays_part_of_the_token(corpus):
    index = _make_index(corpus)

    assert tokenize_query("fairness?") == ["fairness?"]
    assert index.query("fairness?") == []
    assert [r.entry.id for r in index.query("fairness")] == ["tutors"]


# ── Scoring ───────────────────────────────────────────────────────────────────

def test_tokenize_query_drops_short_tokens():
    assert tokenize_query("AI in Education  tutors") == ["education", "tutors"]


def test_title_phrase_match_scores_at_least_100(corpus):
    index = _make_index(corpus)

    results = index.query("Attitudes Toward")

    assert results[0].entry.id == "attitudes"
    assert results[0].score >= 100


def test_score_breakdown_for_title_token():
    entry = _make_entry("e", title="Ethics of AI Tutors")
    # phrase: title +100, full text +20; token: title 1 x 15, full text 1 x 3
    assert score_entry(entry, "tutors", ["tutors"]) == 138


def test_tag_bonus_counts_once_per_token():
    entry = Entry(id="e", title="Unrelated", snippet="", url="/#e", tags=["ethics", "ai ethics"])
    assert score_entry(entry, "ethics", ["ethics"]) == 30


def test_context_bonus_counts_once_per_token():
    entry = Entry(id="e", title="Unrelated", snippet="", url="/#e", context="Learning Analytics")
    assert score_entry(entry, "analytics", ["analytics"]) == 5


def test_token_occurrences_are_counted_per_field():
    entry = _make_entry("e", title="Tutors and tutors", snippet="tutors")
    # full_text = "tutors and tutors  tutors  " -> 3 occurrences
    score = score_entry(entry, "xyz tutors", ["xyz", "tutors"])
    assert score == 2 * 15 + 1 * 10 + 3 * 3


def test_zero_scores_are_excluded(corpus):
    index = _make_index(corpus)
    assert index.query("quantum chromodynamics") == []


def test_results_sorted_descending_with_stable_ties():
    entries = [
        _make_entry("a", title="Peer review"),
        _make_entry("b", title="Peer feedback"),
        _make_entry("c", title="Peer review peer review"),
    ]
    index = _make_index(entries)

    results = index.query("peer")
    scores = [r.score for r in results]

    assert scores == sorted(scores, reverse=True)
    assert [r.entry.id for r in results] == ["c", "a", "b"]


def test_results_capped_at_k(corpus):
    index = _make_index(corpus)

    results = index.get_relevant_entries("tutors evaluating fairness survey", max_results=2)

    assert len(results) == 2
    assert all(r.score > 0 for r in results)


def test_scored_entry_to_dict_carries_score(corpus):
    index = _make_index(corpus)

    payload = index.query("fairness")[0].to_dict()

    assert payload["id"] == "tutors"
    assert payload["score"] > 0
    assert payload["tags"] == ["ethics", "fairness"]
