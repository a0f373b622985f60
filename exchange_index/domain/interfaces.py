# exchange_index/domain/interfaces.py

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .models import ChatMessage, ChatReply, TeamData


@dataclass(frozen=True)
class Selector:
    """
    Node predicate for content tree queries.
    A node matches when every field that is set matches.
    """
    tag: Optional[str] = None
    class_name: Optional[str] = None
    attribute: Optional[str] = None
    element_id: Optional[str] = None


class ContentTreePort(ABC):
    """
    Port for any traversable document tree.
    Nodes are opaque handles. Only the adapter that returned them reads them.
    """

    @abstractmethod
    def select(self, selector: Selector, within: Any = None) -> List[Any]:
        """All matching descendants of `within` (whole document when None), in document order."""
        ...

    @abstractmethod
    def closest_with_id(self, node: Any) -> Optional[Any]:
        """Nearest ancestor (the node itself excluded) with a non-empty id attribute."""
        ...

    @abstractmethod
    def get_attribute(self, node: Any, name: str) -> Optional[str]: ...

    @abstractmethod
    def set_attribute(self, node: Any, name: str, value: str) -> None: ...

    @abstractmethod
    def text(self, node: Any) -> str: ...

    def select_first(self, selector: Selector, within: Any = None) -> Optional[Any]:
        matches = self.select(selector, within)
        return matches[0] if matches else None


class NavigationRegistryPort(ABC):

    @abstractmethod
    def subtopic_links(self) -> List[Tuple[str, str]]:
        """
        Return (parent_topic_id, subtopic_id) for every subtopic navigation
        control in the document.
        """
        ...


class ChatBackendPort(ABC):

    @abstractmethod
    def complete(
        self,
        messages: List[ChatMessage],
        entries: List[dict],
        team_data: TeamData,
    ) -> ChatReply: ...
