import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Union

from src.config.settings import settings
from src.core.chunking import chunk_text
from src.core.errors import DimensionMismatch, EmbeddingProviderError
from src.core.models import ChunkFailure, ChunkMetadata, IngestionResult
from src.core.vector_store import VectorStore
from src.services.embedding_service import EmbeddingService

logger = logging.getLogger(__name__)

KNOWLEDGE_FILE_SUFFIXES = {".txt", ".md"}


class IngestionPipeline:
    """Chunk documents, embed each chunk and append the pairs to a tenant's index"""

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: EmbeddingService,
        max_words: int = None,
        concurrency: int = None,
    ):
        self.vector_store = vector_store
        self.embedder = embedder
        self.max_words = max_words if max_words is not None else settings.CHUNK_MAX_WORDS
        self.concurrency = max(1, concurrency or settings.EMBEDDING_CONCURRENCY)

    async def _embed_all(self, pieces: List[str]) -> List[Union[List[float], EmbeddingProviderError]]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def embed_one(piece: str):
            async with semaphore:
                try:
                    return await self.embedder.embed(piece)
                except EmbeddingProviderError as e:
                    return e

        return await asyncio.gather(*(embed_one(p) for p in pieces))

    async def ingest_document(self, tenant_id: str, source: str, text: str) -> IngestionResult:
        """
        Index one document for a tenant.

        A chunk whose embedding fails is skipped and reported; the rest are
        still written, in chunk order. Write failures propagate.

        Returns:
            IngestionResult: counts of written and failed chunks
        """
        pieces = chunk_text(text, self.max_words)
        logger.info(f"Ingesting {source} for tenant {tenant_id}: {len(pieces)} chunks")

        vectors = await self._embed_all(pieces)
        result = IngestionResult()

        for position, (piece, vector) in enumerate(zip(pieces, vectors)):
            error: Optional[Exception] = vector if isinstance(vector, EmbeddingProviderError) else None
            if error is None:
                try:
                    await self.vector_store.upsert(
                        tenant_id,
                        vector,
                        ChunkMetadata(source=source, text=piece, position=position),
                    )
                except DimensionMismatch as e:
                    error = e

            if error is not None:
                logger.error(f"❌ Failed chunk {position + 1}/{len(pieces)} of {source}: {str(error)}")
                result.failed += 1
                result.errors.append(ChunkFailure(source=source, position=position, error=str(error)))
                continue

            result.written += 1
            logger.info(f"✅ Embedded chunk {position + 1}/{len(pieces)} of {source}")

        logger.info(f"Finished {source} for tenant {tenant_id}: {result.written} written, {result.failed} failed")
        return result

    async def ingest_directory(self, tenant_id: str, directory: Union[str, Path]) -> IngestionResult:
        """Ingest every .txt and .md file in a tenant's knowledge-base folder"""
        kb_dir = Path(directory)
        if not kb_dir.is_dir():
            raise FileNotFoundError(f"Knowledge base directory not found: {kb_dir}")

        files = sorted(
            p for p in kb_dir.iterdir()
            if p.is_file() and p.suffix.lower() in KNOWLEDGE_FILE_SUFFIXES
        )
        logger.info(f"Found {len(files)} knowledge file(s) in {kb_dir}")

        total = IngestionResult()
        for path in files:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            total = total.merge(await self.ingest_document(tenant_id, path.name, text))
        return total
