# exchange_index/domain/models.py

from dataclasses import asdict, dataclass, field
from typing import List


@dataclass
class Entry:
    """
    Represents a single indexed research item extracted from the content tree.
    """
    id: str
    title: str
    snippet: str
    url: str
    full_text: str = field(default="", repr=False)
    citation_text: str = field(default="", repr=False)
    annotation_text: str = field(default="", repr=False)
    source_url: str = ""
    author: str = ""
    tags: List[str] = field(default_factory=list)
    context: str = ""
    topic_id: str = ""
    subtopic_id: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    def to_chat_context(self) -> dict:
        """Shape expected by the chat backend for one grounding entry."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "author": self.author,
        }


@dataclass
class ScoredEntry:
    """
    Represents a ranked entry returned for a keyword query.
    """
    entry: Entry
    score: int

    def to_dict(self) -> dict:
        return {**self.entry.to_dict(), "score": self.score}

    def __repr__(self) -> str:
        return (
            f"ScoredEntry(score={self.score}, "
            f"id='{self.entry.id}', "
            f"title='{self.entry.title[:60]}')"
        )


@dataclass
class TeamMember:
    name: str
    contributions: int = 0


@dataclass
class TeamData:
    members: List[TeamMember] = field(default_factory=list)

    @property
    def total_members(self) -> int:
        return len(self.members)

    @property
    def total_contributions(self) -> int:
        return sum(member.contributions for member in self.members)

    def to_dict(self) -> dict:
        return {
            "members": [asdict(member) for member in self.members],
            "totalMembers": self.total_members,
            "totalContributions": self.total_contributions,
        }


@dataclass
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatReply:
    message: str
    usage: dict = field(default_factory=dict)
    model: str = ""
