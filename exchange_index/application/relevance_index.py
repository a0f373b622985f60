# exchange_index/application/relevance_index.py

from typing import Callable, List, Optional

from exchange_index.application.entry_extractor import EntryExtractor
from exchange_index.domain.interfaces import ContentTreePort, NavigationRegistryPort
from exchange_index.domain.models import Entry, ScoredEntry


DEFAULT_MAX_RESULTS = 5
MIN_TOKEN_LENGTH    = 3

# ── Scoring weights ───────────────────────────────────────────────────────────
PHRASE_IN_TITLE_WEIGHT     = 100
PHRASE_IN_SNIPPET_WEIGHT   = 50
PHRASE_IN_FULL_TEXT_WEIGHT = 20
TOKEN_IN_TITLE_WEIGHT      = 15
TOKEN_IN_SNIPPET_WEIGHT    = 10
TOKEN_IN_FULL_TEXT_WEIGHT  = 3
TOKEN_IN_TAGS_WEIGHT       = 30
TOKEN_IN_CONTEXT_WEIGHT    = 5


def tokenize_query(query: str) -> List[str]:
    return [token for token in query.lower().split() if len(token) >= MIN_TOKEN_LENGTH]


def score_entry(entry: Entry, query_lower: str, tokens: List[str]) -> int:
    """
    Additive keyword score. Occurrences are counted as literal,
    non-overlapping substrings; no length normalization.
    """
    title = entry.title.lower()
    snippet = entry.snippet.lower()
    tags = [tag.lower() for tag in entry.tags]
    context = entry.context.lower()

    score = 0
    if query_lower in title:
        score += PHRASE_IN_TITLE_WEIGHT
    if query_lower in snippet:
        score += PHRASE_IN_SNIPPET_WEIGHT
    if query_lower in entry.full_text:
        score += PHRASE_IN_FULL_TEXT_WEIGHT

    for token in tokens:
        score += title.count(token) * TOKEN_IN_TITLE_WEIGHT
        score += snippet.count(token) * TOKEN_IN_SNIPPET_WEIGHT
        score += entry.full_text.count(token) * TOKEN_IN_FULL_TEXT_WEIGHT
        if any(token in tag for tag in tags):
            score += TOKEN_IN_TAGS_WEIGHT
        if token in context:
            score += TOKEN_IN_CONTEXT_WEIGHT

    return score


class RelevanceIndex:
    """
    Core use case: hold the extracted entries and answer top-k keyword queries.

    Lifecycle:
    - Built lazily on the first read if nobody called build() yet
    - rebuild() re-extracts from the current tree and swaps the list in
      one assignment; readers never see a half-built collection

    The tree is fetched through `tree_provider` on every build so a caller
    can hand in a freshly loaded page before asking for a rebuild.
    """

    def __init__(
        self,
        tree_provider: Callable[[], ContentTreePort],
        extractor: Optional[EntryExtractor] = None,
        registry_provider: Optional[Callable[[ContentTreePort], NavigationRegistryPort]] = None,
    ):
        self._tree_provider = tree_provider
        self._extractor = extractor or EntryExtractor()
        self._registry_provider = registry_provider
        self._entries: List[Entry] = []
        self._is_ready = False

    def build(self) -> None:
        tree = self._tree_provider()
        registry = self._registry_provider(tree) if self._registry_provider else None

        self._entries = self._extractor.extract(tree, registry)
        self._is_ready = True
        print(f"[RelevanceIndex] ✓ Indexed {len(self._entries)} research entries")

    def rebuild(self) -> None:
        self.build()

    def is_ready(self) -> bool:
        return self._is_ready

    def get_all_entries(self) -> List[Entry]:
        self._ensure_built()
        return list(self._entries)

    def query(self, text: str, k: int = DEFAULT_MAX_RESULTS) -> List[ScoredEntry]:
        """
        Score every entry against `text` and return the top `k`.
        Degenerate input (None, empty, whitespace, k <= 0) yields [].
        """
        self._ensure_built()

        if not isinstance(text, str) or not text.strip() or k <= 0:
            return []

        query_lower = text.lower()
        tokens = tokenize_query(text)

        scored = [
            ScoredEntry(entry=entry, score=score_entry(entry, query_lower, tokens))
            for entry in self._entries
        ]
        relevant = [result for result in scored if result.score > 0]
        # sorted() is stable, so equal scores keep collection order
        relevant = sorted(relevant, key=lambda result: result.score, reverse=True)
        return relevant[:k]

    # ─── Caller-facing aliases ────────────────────────────────────────────────

    def get_relevant_entries(self, query: str, max_results: int = DEFAULT_MAX_RESULTS) -> List[ScoredEntry]:
        return self.query(query, max_results)

    def rebuild_index(self) -> None:
        self.rebuild()

    def _ensure_built(self) -> None:
        if not self._is_ready:
            self.build()
