from typing import Dict, List, Optional
import logging

from pydantic import BaseModel, Field

from src.config.tenants import TenantConfig, TenantRegistry
from src.core.errors import EmbeddingProviderError, VectorStoreError
from src.core.models import SearchResult
from src.core.vector_store import VectorStore
from src.services.embedding_service import EmbeddingService
from src.services.openai_service import OpenAIService, TextGenerationError
from src.services.session_store import CallSession, SessionStore, Turn

logger = logging.getLogger(__name__)


class TurnResult(BaseModel):
    reply: str
    grounded: bool = False
    sources: List[SearchResult] = Field(default_factory=list)


def build_context(results: List[SearchResult]) -> str:
    return "\n\n".join(f"Context {i}: {r.chunk.text}" for i, r in enumerate(results, start=1))


def build_messages(
    tenant: TenantConfig,
    session: CallSession,
    transcript: str,
    results: List[SearchResult],
) -> List[Dict[str, str]]:
    """System prompt, retrieved context, prior turns, then the caller's new utterance"""
    messages = [{"role": "system", "content": tenant.system_prompt}]
    if results:
        messages.append({"role": "system", "content": f"Use context:\n{build_context(results)}"})
    for turn in session.history:
        messages.append({"role": "user", "content": turn.user})
        messages.append({"role": "assistant", "content": turn.assistant})
    messages.append({"role": "user", "content": transcript})
    return messages


class Assistant:
    """Retrieval-augmented conversation handler, one session per call"""

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: EmbeddingService,
        generator: OpenAIService,
        sessions: SessionStore,
        tenants: TenantRegistry,
    ):
        self.vector_store = vector_store
        self.embedder = embedder
        self.generator = generator
        self.sessions = sessions
        self.tenants = tenants

    def start_call(self, tenant_id: str, call_sid: str) -> str:
        tenant = self.tenants.get(tenant_id)
        self.sessions.save(self.sessions.get(call_sid, tenant_id))
        logger.info(f"📞 Started call {call_sid} for tenant {tenant_id}")
        return tenant.greeting

    async def retrieve(self, tenant: TenantConfig, transcript: str) -> Optional[List[SearchResult]]:
        """Knowledge-base context for an utterance, or None when retrieval failed"""
        try:
            query = await self.embedder.embed(transcript)
            return await self.vector_store.search(tenant.tenant_id, query, tenant.top_k)
        except (EmbeddingProviderError, VectorStoreError) as e:
            logger.warning(f"Retrieval failed for tenant {tenant.tenant_id}, answering without context: {str(e)}")
            return None

    async def handle_turn(self, tenant_id: str, call_sid: str, transcript: str) -> TurnResult:
        tenant = self.tenants.get(tenant_id)
        transcript = (transcript or "").strip()
        if not transcript:
            return TurnResult(reply=tenant.fallback)

        logger.info(f"🗣️  User: {transcript}")
        session = self.sessions.get(call_sid, tenant_id)
        results = await self.retrieve(tenant, transcript) or []

        messages = build_messages(tenant, session, transcript, results)
        try:
            reply = await self.generator.generate(
                messages,
                model=tenant.model,
                temperature=tenant.temperature,
                max_tokens=tenant.max_tokens,
            )
        except TextGenerationError:
            return TurnResult(reply=tenant.fallback)
        if not reply:
            return TurnResult(reply=tenant.fallback)

        logger.info(f"🤖  Bot: {reply}")
        session.history.append(Turn(user=transcript, assistant=reply))
        self.sessions.save(session)
        return TurnResult(reply=reply, grounded=bool(results), sources=results)

    def end_call(self, call_sid: str) -> None:
        self.sessions.clear(call_sid)
        logger.info(f"Ended call {call_sid}")
