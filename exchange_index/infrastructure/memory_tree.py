# exchange_index/infrastructure/memory_tree.py

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from exchange_index.domain.interfaces import ContentTreePort, Selector


@dataclass(eq=False)
class TreeNode:
    """
    Minimal element node: tag, attributes, own text and ordered children.
    """
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: List["TreeNode"] = field(default_factory=list)
    parent: Optional["TreeNode"] = field(default=None, repr=False)

    def append(self, *children: "TreeNode") -> "TreeNode":
        for child in children:
            child.parent = self
            self.children.append(child)
        return self

    def iter_descendants(self):
        for child in self.children:
            yield child
            yield from child.iter_descendants()


def node(tag: str, *children: TreeNode, text: str = "", **attributes: str) -> TreeNode:
    """
    Fixture helper. `class_` maps to `class`; other underscores become dashes
    so `data_tags="a,b"` reads back as the `data-tags` attribute.
    """
    attrs = {}
    for key, value in attributes.items():
        name = "class" if key == "class_" else key.replace("_", "-")
        attrs[name] = value
    return TreeNode(tag=tag, attributes=attrs, text=text).append(*children)


class InMemoryContentTree(ContentTreePort):
    """
    Content tree held entirely in Python objects.
    Used for fixtures and for callers that build pages programmatically.
    """

    def __init__(self, root: TreeNode):
        self._root = root

    @property
    def root(self) -> TreeNode:
        return self._root

    def select(self, selector: Selector, within: Optional[TreeNode] = None) -> List[TreeNode]:
        start = within if within is not None else self._root
        return [n for n in start.iter_descendants() if self._matches(n, selector)]

    def closest_with_id(self, node: TreeNode) -> Optional[TreeNode]:
        current = node.parent
        while current is not None:
            if current.attributes.get("id"):
                return current
            current = current.parent
        return None

    def get_attribute(self, node: TreeNode, name: str) -> Optional[str]:
        return node.attributes.get(name)

    def set_attribute(self, node: TreeNode, name: str, value: str) -> None:
        node.attributes[name] = value

    def text(self, node: TreeNode) -> str:
        return node.text + "".join(self.text(child) for child in node.children)

    @staticmethod
    def _matches(node: TreeNode, selector: Selector) -> bool:
        if selector.tag is not None and node.tag != selector.tag:
            return False
        if selector.class_name is not None:
            if selector.class_name not in node.attributes.get("class", "").split():
                return False
        if selector.attribute is not None and selector.attribute not in node.attributes:
            return False
        if selector.element_id is not None and node.attributes.get("id") != selector.element_id:
            return False
        return True
