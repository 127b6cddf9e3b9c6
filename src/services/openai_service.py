from typing import List, Dict
import logging

from openai import AsyncOpenAI, OpenAIError

from src.config.settings import settings

logger = logging.getLogger(__name__)

class TextGenerationError(Exception):
    pass

class OpenAIService:
    """Chat completion client used to produce the receptionist's replies"""

    def __init__(self, client: AsyncOpenAI = None):
        if client is None:
            if not settings.OPENAI_API_KEY:
                raise ValueError("OPENAI_API_KEY not set in environment variables")
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=60.0, max_retries=3)
        self.client = client

    async def generate(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
        temperature: float = 0.6,
        max_tokens: int = 80,
    ) -> str:
        """Get the assistant's reply for a prepared message list"""
        try:
            logger.debug(f"Sending {len(messages)} messages to OpenAI")
            response = await self.client.chat.completions.create(
                model=model or settings.CHAT_MODEL,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as e:
            logger.error(f"Error getting AI response: {str(e)}")
            raise TextGenerationError(str(e)) from e

        content = response.choices[0].message.content or ""
        reply = content.strip()
        logger.info(f"OpenAI response: {reply}")
        return reply
