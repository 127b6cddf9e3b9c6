from typing import List
import logging

from openai import AsyncOpenAI, OpenAIError

from src.config.settings import settings
from src.core.errors import EmbeddingProviderError

logger = logging.getLogger(__name__)

class EmbeddingService:
    """Turns text into vectors with the OpenAI embeddings API"""

    def __init__(self, client: AsyncOpenAI = None, model: str = None):
        if client is None:
            if not settings.OPENAI_API_KEY:
                raise ValueError("OPENAI_API_KEY not set in environment variables")
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=60.0, max_retries=3)
        self.client = client
        self.model = model or settings.EMBEDDING_MODEL

    async def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingProviderError("Cannot embed empty text")
        try:
            response = await self.client.embeddings.create(model=self.model, input=text)
        except OpenAIError as e:
            logger.error(f"🔴 Embedding request failed: {str(e)}")
            raise EmbeddingProviderError(str(e)) from e
        return list(response.data[0].embedding)
