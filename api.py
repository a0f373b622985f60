from datetime import datetime, timezone
from typing import Callable, List, Optional
import os

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import uvicorn

from exchange_index.application.chat_service import ChatService
from exchange_index.application.entry_extractor import EntryExtractor
from exchange_index.application.relevance_index import RelevanceIndex
from exchange_index.application.team_data import TeamDataExtractor
from exchange_index.domain.models import ChatMessage
from exchange_index.infrastructure.anthropic_backend import AnthropicChatBackend, ChatBackendError
from exchange_index.infrastructure.html_tree import HtmlContentTree
from exchange_index.infrastructure.navigation import SubtopicCardRegistry
from exchange_index.infrastructure.settings import get_chat_settings

# ── Configuration ────────────────────────────────────────────────────────────
CONTENT_PATH = os.environ.get("EXCHANGE_CONTENT_PATH", "public/index.html")
BASE_PATH = os.environ.get("EXCHANGE_BASE_PATH", "/")
DEFAULT_TOP_K = 5
CHAT_CONTEXT_ENTRIES = 10
SERVICE_NAME = "AI Education VIP Research Exchange API"

# ── API Models ───────────────────────────────────────────────────────────────
class SearchRequest(BaseModel):
    query: str
    top_k: int = Field(default=DEFAULT_TOP_K, ge=1)

class SearchResponse(BaseModel):
    query: str
    results: List[dict]

class ChatMessageSchema(BaseModel):
    role: str
    content: str

class ChatRequest(BaseModel):
    messages: List[ChatMessageSchema]

class ChatResponse(BaseModel):
    message: str
    usage: dict
    modelUsed: str


class PageSource:
    """Holds the currently loaded page so /reindex can swap in a fresh copy."""

    def __init__(self, content_path: str):
        self._content_path = content_path
        self._tree: Optional[HtmlContentTree] = None

    def load(self) -> None:
        self._tree = HtmlContentTree.from_file(self._content_path)

    def current(self) -> HtmlContentTree:
        if self._tree is None:
            self.load()
        return self._tree


def create_app(
    index: RelevanceIndex,
    chat_service: ChatService,
    reload_content: Optional[Callable[[], None]] = None,
) -> FastAPI:
    app = FastAPI(
        title="Research Exchange API",
        description="Keyword search and grounded chat over research exchange entries.",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Endpoints ────────────────────────────────────────────────────────────
    @app.get("/")
    def read_root():
        return {
            "message": "Research Exchange API is running.",
            "status": "ready" if index.is_ready() else "indexing_required",
        }

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
        }

    @app.get("/status")
    def get_status():
        """Readiness of the index and how many entries it holds."""
        return {
            "is_ready": index.is_ready(),
            "entries_indexed": len(index.get_all_entries()) if index.is_ready() else 0,
        }

    @app.get("/entries")
    def get_entries():
        return {"entries": [entry.to_dict() for entry in index.get_all_entries()]}

    @app.post("/search", response_model=SearchResponse)
    def search(request: SearchRequest):
        results = index.get_relevant_entries(request.query, request.top_k)
        return SearchResponse(
            query=request.query,
            results=[result.to_dict() for result in results],
        )

    @app.post("/reindex")
    def trigger_reindex():
        """Reload the page (when a loader is configured) and rebuild the index."""
        try:
            if reload_content is not None:
                reload_content()
            index.rebuild()
        except FileNotFoundError as e:
            print(f"[API] Re-indexing failed: {e}")
            raise HTTPException(status_code=500, detail=f"Re-indexing failed: {str(e)}")

        return {
            "message": "Re-indexing complete.",
            "entries_indexed": len(index.get_all_entries()),
        }

    @app.post("/chat", response_model=ChatResponse)
    def chat(request: ChatRequest):
        messages = [ChatMessage(role=m.role, content=m.content) for m in request.messages]
        try:
            reply = chat_service.reply(messages)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ChatBackendError as e:
            print(f"[API] Chat failed: {e}")
            raise HTTPException(status_code=502, detail="Failed to get response from AI")

        return ChatResponse(message=reply.message, usage=reply.usage, modelUsed=reply.model)

    return app


def build_default_app() -> FastAPI:
    """Wire the production adapters from module configuration and the environment."""
    page = PageSource(CONTENT_PATH)
    page.load()

    index = RelevanceIndex(
        tree_provider=page.current,
        extractor=EntryExtractor(base_path=BASE_PATH),
        registry_provider=SubtopicCardRegistry,
    )
    index.build()

    team_extractor = TeamDataExtractor()
    chat_service = ChatService(
        index=index,
        backend=AnthropicChatBackend(get_chat_settings()),
        team_data_provider=lambda: team_extractor.extract(page.current()),
        max_entries=CHAT_CONTEXT_ENTRIES,
    )
    return create_app(index, chat_service, reload_content=page.load)


if __name__ == "__main__":
    uvicorn.run(build_default_app(), host="0.0.0.0", port=8000)
