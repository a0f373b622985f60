# exchange_index/application/entry_extractor.py

import re
from typing import Any, List, Optional, Set, Tuple
from urllib.parse import quote

from exchange_index.domain.interfaces import ContentTreePort, NavigationRegistryPort, Selector
from exchange_index.domain.models import Entry


# ── Page vocabulary ───────────────────────────────────────────────────────────
ENTRY_CLASS            = "bib-entry"
CITATION_CLASS         = "bib-citation"
ANNOTATION_CLASS       = "annotation-text"
AUTHOR_CLASS           = "annotation-author"
SECTION_HEADER_CLASS   = "topic-page-header"
SOURCE_TITLE_ATTRIBUTE = "data-source-title"
SOURCE_URL_ATTRIBUTE   = "data-source-url"
TAGS_ATTRIBUTE         = "data-tags"

MAX_TITLE_LENGTH   = 100
MAX_SNIPPET_LENGTH = 200
MAX_SLUG_LENGTH    = 50
ELLIPSIS           = "..."

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH]


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def parse_author_name(author_line: str) -> str:
    """Name part of an author line such as 'Jane Doe 5/1/2024'."""
    return re.split(r"\d", author_line, maxsplit=1)[0].strip()


def parse_tags(raw: str) -> List[str]:
    tags: List[str] = []
    for tag in (raw or "").split(","):
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def build_entry_url(
    entry_id: str,
    topic_id: str = "",
    subtopic_id: str = "",
    base_path: str = "/",
) -> str:
    if topic_id and subtopic_id:
        return (
            f"{base_path}?topic={quote(topic_id, safe=_URI_COMPONENT_SAFE)}"
            f"&subtopic={quote(subtopic_id, safe=_URI_COMPONENT_SAFE)}#{entry_id}"
        )
    if topic_id:
        return f"{base_path}?topic={quote(topic_id, safe=_URI_COMPONENT_SAFE)}#{entry_id}"
    return f"{base_path}#{entry_id}"


def compose_full_text(
    title: str,
    citation_text: str,
    annotation_text: str,
    tags: List[str],
    context: str,
) -> str:
    return " ".join([title, citation_text, annotation_text, ",".join(tags), context]).lower()


class EntryExtractor:
    """
    Converts a rendered content tree into a flat list of Entry records.

    Extraction rules per `.bib-entry` node, in document order:
    - id: existing id → slug of the source title → `entry-{position}`
      (an id already claimed earlier in the pass counts as missing;
      synthesized ids are written back so the next pass reads them)
    - nodes without a `.bib-citation` are skipped
    - topic/subtopic come from the nearest ancestor with an id, resolved
      against the subtopic links of the navigation registry, when one is given

    A failure on one node is logged and that node skipped; the build
    always completes.
    """

    def __init__(self, base_path: str = "/"):
        self._base_path = base_path

    def extract(
        self,
        tree: ContentTreePort,
        registry: Optional[NavigationRegistryPort] = None,
    ) -> List[Entry]:
        # without a registry every section resolves as a top-level topic
        subtopic_links = registry.subtopic_links() if registry is not None else []

        taken_ids: Set[str] = {
            tree.get_attribute(n, "id")
            for n in tree.select(Selector(attribute="id"))
        }
        used_ids: Set[str] = set()

        entries: List[Entry] = []
        skipped = 0

        for position, entry_node in enumerate(tree.select(Selector(class_name=ENTRY_CLASS))):
            try:
                entry = self._extract_entry(
                    tree, entry_node, position, taken_ids, used_ids, subtopic_links
                )
            except Exception as error:
                print(f"[EntryExtractor] ⚠ Failed to index entry #{position}: {error}")
                continue

            if entry is None:
                skipped += 1
                continue
            entries.append(entry)

        print(
            f"[EntryExtractor] Extracted {len(entries)} entries"
            + (f" ({skipped} skipped without citation)" if skipped else "")
        )
        return entries

    # ─── Private: Per-entry extraction ────────────────────────────────────────

    def _extract_entry(
        self,
        tree: ContentTreePort,
        entry_node: Any,
        position: int,
        taken_ids: Set[str],
        used_ids: Set[str],
        subtopic_links: List[Tuple[str, str]],
    ) -> Optional[Entry]:
        citation = tree.select_first(Selector(class_name=CITATION_CLASS), within=entry_node)
        entry_id = self._resolve_id(tree, entry_node, citation, position, taken_ids, used_ids)

        if citation is None:
            return None

        source_title = tree.get_attribute(citation, SOURCE_TITLE_ATTRIBUTE) or ""
        source_url = tree.get_attribute(citation, SOURCE_URL_ATTRIBUTE) or ""
        citation_text = tree.text(citation).strip()

        annotation = tree.select_first(Selector(class_name=ANNOTATION_CLASS), within=entry_node)
        annotation_text = tree.text(annotation).strip() if annotation is not None else ""

        author_node = tree.select_first(Selector(class_name=AUTHOR_CLASS), within=entry_node)
        author = parse_author_name(tree.text(author_node)) if author_node is not None else ""

        tags = parse_tags(tree.get_attribute(entry_node, TAGS_ATTRIBUTE) or "")

        context, topic_id, subtopic_id = self._resolve_section(tree, entry_node, subtopic_links)

        title = truncate(source_title.strip() or citation_text.split(".")[0].strip(), MAX_TITLE_LENGTH)
        snippet = truncate(annotation_text, MAX_SNIPPET_LENGTH)

        return Entry(
            id=entry_id,
            title=title,
            snippet=snippet,
            url=build_entry_url(entry_id, topic_id, subtopic_id, self._base_path),
            full_text=compose_full_text(title, citation_text, annotation_text, tags, context),
            citation_text=citation_text,
            annotation_text=annotation_text,
            source_url=source_url,
            author=author,
            tags=tags,
            context=context,
            topic_id=topic_id,
            subtopic_id=subtopic_id,
        )

    @staticmethod
    def _resolve_id(
        tree: ContentTreePort,
        entry_node: Any,
        citation: Any,
        position: int,
        taken_ids: Set[str],
        used_ids: Set[str],
    ) -> str:
        """
        `taken_ids` holds every id present in the document, `used_ids` the
        ids already claimed by entries in this pass. A duplicate existing id
        is replaced by the positional one and written back.
        """
        existing = tree.get_attribute(entry_node, "id")
        if existing and existing not in used_ids:
            used_ids.add(existing)
            return existing

        positional = f"entry-{position}"
        candidate = ""
        if citation is not None and not existing:
            candidate = slugify(tree.get_attribute(citation, SOURCE_TITLE_ATTRIBUTE) or "")
        if not candidate or candidate in taken_ids:
            candidate = positional

        suffix = 1
        while candidate in taken_ids:
            candidate = f"{positional}-{suffix}"
            suffix += 1

        tree.set_attribute(entry_node, "id", candidate)
        taken_ids.add(candidate)
        used_ids.add(candidate)
        return candidate

    @staticmethod
    def _resolve_section(
        tree: ContentTreePort,
        entry_node: Any,
        subtopic_links: List[Tuple[str, str]],
    ) -> Tuple[str, str, str]:
        """Return (context, topic_id, subtopic_id) for the section holding the entry."""
        section = tree.closest_with_id(entry_node)
        if section is None:
            return "", "", ""

        section_id = tree.get_attribute(section, "id")

        context = ""
        for header in tree.select(Selector(class_name=SECTION_HEADER_CLASS), within=section):
            heading = tree.select_first(Selector(tag="h1"), within=header)
            if heading is not None:
                context = tree.text(heading).strip()
                break

        for parent_id, child_id in subtopic_links:
            if section_id in (child_id, f"{parent_id}-{child_id}"):
                return context, parent_id, child_id

        return context, section_id, ""
