# exchange_index/infrastructure/navigation.py

import re
from typing import List, Optional, Tuple

from exchange_index.domain.interfaces import ContentTreePort, NavigationRegistryPort, Selector


SUBTOPIC_CARD_CLASS = "subtopic-card"
SUBTOPIC_HANDLER_ATTRIBUTE = "onclick"

# showSubtopicPage('parent-topic', 'subtopic')
SUBTOPIC_HANDLER_PATTERN = re.compile(
    r"showSubtopicPage\(\s*'([^']+)'\s*,\s*'([^']+)'\s*\)"
)


def parse_subtopic_handler(handler: str) -> Optional[Tuple[str, str]]:
    match = SUBTOPIC_HANDLER_PATTERN.search(handler or "")
    if not match:
        return None
    return match.group(1), match.group(2)


class SubtopicCardRegistry(NavigationRegistryPort):
    """
    Reconstructs the topic hierarchy from the subtopic cards on the page.

    Subtopic sections carry no link to their parent topic; only the card
    that navigates to them knows both ids.
    """

    def __init__(self, tree: ContentTreePort):
        self._tree = tree

    def subtopic_links(self) -> List[Tuple[str, str]]:
        cards = self._tree.select(Selector(
            class_name=SUBTOPIC_CARD_CLASS,
            attribute=SUBTOPIC_HANDLER_ATTRIBUTE,
        ))

        links = []
        for card in cards:
            parsed = parse_subtopic_handler(
                self._tree.get_attribute(card, SUBTOPIC_HANDLER_ATTRIBUTE)
            )
            if parsed:
                links.append(parsed)
        return links
