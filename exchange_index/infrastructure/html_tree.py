# exchange_index/infrastructure/html_tree.py

from pathlib import Path
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from exchange_index.domain.interfaces import ContentTreePort, Selector


DEFAULT_PARSER = "html.parser"


class HtmlContentTree(ContentTreePort):
    """
    Content tree backed by a parsed HTML page (BeautifulSoup).

    Attribute writes mutate the parsed document in memory only;
    call render() to get the updated markup back.
    """

    def __init__(self, markup: str, parser: str = DEFAULT_PARSER):
        self._soup = BeautifulSoup(markup, parser)

    @classmethod
    def from_file(cls, file_path: str, parser: str = DEFAULT_PARSER) -> "HtmlContentTree":
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Content file not found: {file_path}")

        markup = path.read_text(encoding="utf-8", errors="ignore")
        print(f"[HtmlContentTree] Loaded '{path.name}' ({len(markup)} chars)")
        return cls(markup, parser=parser)

    def select(self, selector: Selector, within: Optional[Tag] = None) -> List[Tag]:
        start = within if within is not None else self._soup

        attrs = {}
        if selector.attribute is not None:
            attrs[selector.attribute] = True
        if selector.element_id is not None:
            attrs["id"] = selector.element_id

        kwargs = {}
        if selector.class_name is not None:
            kwargs["class_"] = selector.class_name

        return start.find_all(selector.tag or True, attrs=attrs, **kwargs)

    def closest_with_id(self, node: Tag) -> Optional[Tag]:
        for ancestor in node.parents:
            if isinstance(ancestor, Tag) and ancestor.get("id"):
                return ancestor
        return None

    def get_attribute(self, node: Tag, name: str) -> Optional[str]:
        value = node.get(name)
        # bs4 returns multi-valued attributes (class, rel, ...) as lists
        if isinstance(value, list):
            return " ".join(value)
        return value

    def set_attribute(self, node: Tag, name: str, value: str) -> None:
        node[name] = value

    def text(self, node: Tag) -> str:
        return node.get_text()

    def render(self) -> str:
        return str(self._soup)
