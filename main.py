# main.py

import os
import sys

from exchange_index.application.entry_extractor import EntryExtractor
from exchange_index.application.relevance_index import RelevanceIndex
from exchange_index.infrastructure.html_tree import HtmlContentTree
from exchange_index.infrastructure.navigation import SubtopicCardRegistry
from exchange_index.interface.cli import (
    display_welcome_banner,
    display_indexing_status,
    prompt_for_query,
    display_results,
    display_error,
    ask_continue,
)


CONTENT_PATH = os.environ.get("EXCHANGE_CONTENT_PATH", "public/index.html")
BASE_PATH = os.environ.get("EXCHANGE_BASE_PATH", "/")
TOP_K_RESULTS = 5


def main() -> None:
    display_welcome_banner()

    content_path = sys.argv[1] if len(sys.argv) > 1 else CONTENT_PATH

    # ── 1. Load the rendered page ────────────────────────────────────────────
    try:
        tree = HtmlContentTree.from_file(content_path)
    except FileNotFoundError as error:
        display_error(str(error))
        sys.exit(1)

    index = RelevanceIndex(
        tree_provider=lambda: tree,
        extractor=EntryExtractor(base_path=BASE_PATH),
        registry_provider=SubtopicCardRegistry,
    )

    # ── 2. Build eagerly so the first query does not pay for it ──────────────
    index.build()
    entries = index.get_all_entries()

    if not entries:
        display_error(f"No research entries found in '{content_path}'.")
        sys.exit(1)

    display_indexing_status(len(entries))

    # ── 3. Interactive search loop ────────────────────────────────────────────
    while True:
        query = prompt_for_query()
        results = index.get_relevant_entries(query, TOP_K_RESULTS)
        display_results(query, results)

        if not ask_continue():
            break


if __name__ == "__main__":
    main()
