# exchange_index/infrastructure/anthropic_backend.py

from typing import List, Optional

import httpx

from exchange_index.domain.interfaces import ChatBackendPort
from exchange_index.domain.models import ChatMessage, ChatReply, TeamData
from exchange_index.infrastructure.settings import ChatSettings


SYSTEM_PROMPT_PREAMBLE = """You are a helpful AI assistant for the AI in Education VIP Research Exchange website. Your role is to answer questions about AI in education research, team members, and the site content.

IMPORTANT CAPABILITIES:
- Answer questions about research entries, team members, contributions, and site content
- Use reasoning and inference to answer questions even if the answer isn't explicitly stated
- Count and aggregate data (e.g., "how many contributions does X have?")
- Compare and analyze information across multiple entries
- Provide insights based on the available data

When answering questions:
1. Provide clear, concise, and accurate information
2. Use the provided data to infer answers even if not explicitly stated
3. For questions about team members, use the team member data provided
4. For questions requiring counting or aggregation, calculate from the available data
5. IMPORTANT: When asked about a specific team member's contributions, ONLY reference entries where that person is listed as the "Author/Contributor"
6. Do NOT include entries where the person's name appears in the content but they are not the author
7. When referencing research entries, mention the title and author, but DO NOT include clickable links
8. Keep responses conversational and informative without URLs or link formatting

"""


class ChatBackendError(RuntimeError):
    """Raised when the LLM backend cannot produce a reply."""


def build_system_prompt(entries: List[dict], team_data: TeamData) -> str:
    parts = [SYSTEM_PROMPT_PREAMBLE]

    if team_data.members:
        parts.append("\nTEAM MEMBER INFORMATION:\n")
        parts.append(f"Total team members: {team_data.total_members}\n")
        parts.append(f"Total contributions: {team_data.total_contributions}\n\n")
        parts.append("Team members and their contributions:\n")
        for rank, member in enumerate(team_data.members, start=1):
            parts.append(f"{rank}. {member.name}: {member.contributions} contribution(s)\n")
        parts.append("\n")

    if entries:
        parts.append(f"\nRESEARCH ENTRIES ({len(entries)} relevant entries):\n\n")
        for rank, entry in enumerate(entries, start=1):
            parts.append(f"{rank}. Title: {entry.get('title', '')}\n")
            if entry.get("author"):
                parts.append(f"   Author/Contributor: {entry['author']}\n")
            parts.append(f"   URL: {entry.get('url', '')}\n")
            if entry.get("snippet"):
                parts.append(f"   Summary: {entry['snippet']}\n")
            parts.append("\n")

    return "".join(parts)


class AnthropicChatBackend(ChatBackendPort):
    """
    Calls the Anthropic Messages API over plain HTTP.
    One request per turn, no retries. Failures surface as ChatBackendError.
    """

    def __init__(self, settings: ChatSettings, client: Optional[httpx.Client] = None):
        self._settings = settings
        self._client = client or httpx.Client(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
        )

    def complete(
        self,
        messages: List[ChatMessage],
        entries: List[dict],
        team_data: TeamData,
    ) -> ChatReply:
        if not self._settings.api_key:
            raise ChatBackendError("ANTHROPIC_API_KEY is not configured.")

        payload = {
            "model": self._settings.model,
            "max_tokens": self._settings.max_tokens,
            "system": build_system_prompt(entries, team_data),
            "messages": [message.to_dict() for message in messages],
        }
        headers = {
            "x-api-key": self._settings.api_key,
            "anthropic-version": self._settings.api_version,
            "content-type": "application/json",
        }

        try:
            response = self._client.post("/v1/messages", json=payload, headers=headers)
        except httpx.HTTPError as error:
            print(f"[AnthropicBackend] Request failed: {error}")
            raise ChatBackendError(f"Failed to reach the chat backend: {error}") from error

        if response.status_code != 200:
            print(f"[AnthropicBackend] API error {response.status_code}: {response.text[:200]}")
            raise ChatBackendError(f"Chat backend returned status {response.status_code}.")

        try:
            data = response.json()
        except ValueError as error:
            print(f"[AnthropicBackend] Malformed response body: {response.text[:200]}")
            raise ChatBackendError("Chat backend returned a malformed response.") from error

        if not isinstance(data, dict):
            raise ChatBackendError("Chat backend returned a malformed response.")

        content = data.get("content")
        text_blocks = [
            block.get("text", "")
            for block in (content if isinstance(content, list) else [])
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        if not text_blocks:
            raise ChatBackendError("Chat backend returned no text content.")

        return ChatReply(
            message=text_blocks[0],
            usage=data.get("usage", {}),
            model=data.get("model", self._settings.model),
        )
