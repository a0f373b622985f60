# exchange_index/application/chat_service.py

from typing import Callable, List, Optional

from exchange_index.application.relevance_index import RelevanceIndex
from exchange_index.domain.interfaces import ChatBackendPort
from exchange_index.domain.models import ChatMessage, ChatReply, TeamData


DEFAULT_CONTEXT_ENTRIES = 10


class ChatService:
    """
    Grounds a chat turn in the research entries most relevant to the
    latest user message, then hands the conversation to the LLM backend.

    The service owns no conversation state; the caller sends the full
    history on every turn.
    """

    def __init__(
        self,
        index: RelevanceIndex,
        backend: ChatBackendPort,
        team_data_provider: Optional[Callable[[], TeamData]] = None,
        max_entries: int = DEFAULT_CONTEXT_ENTRIES,
    ):
        self._index = index
        self._backend = backend
        self._team_data_provider = team_data_provider
        self._max_entries = max_entries

    def reply(self, messages: List[ChatMessage]) -> ChatReply:
        if not messages:
            raise ValueError("Conversation cannot be empty.")

        latest = messages[-1]
        if latest.role != "user":
            raise ValueError("Last message must come from the user.")

        relevant = self._index.get_relevant_entries(latest.content, self._max_entries)
        entries = [result.entry.to_chat_context() for result in relevant]

        team_data = self._team_data_provider() if self._team_data_provider else TeamData()

        print(
            f"[ChatService] Grounding reply in {len(entries)} entries, "
            f"{team_data.total_members} team members"
        )
        return self._backend.complete(messages, entries, team_data)
