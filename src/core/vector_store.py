"""
Exact top-k cosine search over a tenant's knowledge-base index.

Every query loads the tenant's full index and scans it linearly; per-tenant
corpora are expected to stay in the hundreds to low thousands of chunks.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Sequence

import numpy as np

from src.core.errors import DimensionMismatch
from src.core.index_store import Index, IndexBackend
from src.core.models import Chunk, ChunkMetadata, EmbeddingRecord, IndexStats, SearchResult

logger = logging.getLogger(__name__)


def cosine_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Cosine similarity of query against each row; zero-length vectors score 0"""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
    return np.clip(scores, -1.0, 1.0)


class VectorStore:
    def __init__(self, backend: IndexBackend):
        self.backend = backend
        # Serializes load -> append -> save per tenant within this process
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def load(self, tenant_id: str) -> Index:
        return await asyncio.to_thread(self.backend.load, tenant_id)

    async def search(self, tenant_id: str, query_embedding: Sequence[float], k: int) -> List[SearchResult]:
        """
        Return up to k chunks ordered by descending cosine similarity.

        Ties keep ingestion order. An empty index yields an empty list.

        Raises:
            DimensionMismatch: query length differs from the stored vectors
            CorruptIndex: the persisted index cannot be parsed
        """
        if k < 0:
            raise ValueError("k must not be negative")

        chunks, embeddings = await self.load(tenant_id)
        logger.debug(f"Searching {len(chunks)} chunks for tenant {tenant_id} with k={k}")
        if not embeddings or k == 0:
            return []

        matrix = np.asarray([e.vector for e in embeddings], dtype=np.float64)
        query = np.asarray(query_embedding, dtype=np.float64)
        if query.ndim != 1 or query.shape[0] != matrix.shape[1]:
            raise DimensionMismatch(matrix.shape[1], query.size)

        scores = cosine_scores(matrix, query)
        # Stable sort keeps the earlier chunk first among equal scores
        order = np.argsort(-scores, kind="stable")[:k]
        return [SearchResult(score=float(scores[i]), chunk=chunks[i]) for i in order]

    async def upsert(self, tenant_id: str, embedding: Sequence[float], metadata: ChunkMetadata) -> Chunk:
        """
        Append one chunk and its embedding to the tenant's index and persist it.

        Raises:
            DimensionMismatch: embedding length differs from the tenant's index
            PersistenceError: the write failed; re-verify the index before retrying
        """
        vector = [float(x) for x in embedding]
        if not vector:
            raise ValueError("Embedding must not be empty")

        async with self._locks[tenant_id]:
            chunks, embeddings = await self.load(tenant_id)
            if embeddings and len(embeddings[0].vector) != len(vector):
                raise DimensionMismatch(len(embeddings[0].vector), len(vector))

            position = metadata.position
            if position is None:
                position = sum(1 for c in chunks if c.source == metadata.source)

            chunk = Chunk(tenant_id=tenant_id, source=metadata.source, position=position, text=metadata.text)
            record = EmbeddingRecord(tenant_id=tenant_id, vector=vector, chunk_id=chunk.id)

            if self.backend.supports_append:
                await asyncio.to_thread(self.backend.append, tenant_id, chunk, record)
            else:
                chunks.append(chunk)
                embeddings.append(record)
                await asyncio.to_thread(self.backend.save, tenant_id, chunks, embeddings)

        logger.debug(f"Upserted chunk {chunk.id} ({chunk.source}#{chunk.position}) for tenant {tenant_id}")
        return chunk

    async def upsert_chunk(self, tenant_id: str, embedding: Sequence[float], metadata: dict) -> Chunk:
        """Dict-shaped variant of upsert used by the HTTP layer"""
        return await self.upsert(tenant_id, embedding, ChunkMetadata(**metadata))

    async def reset(self, tenant_id: str) -> None:
        """Replace the tenant's index with an empty one"""
        async with self._locks[tenant_id]:
            await asyncio.to_thread(self.backend.save, tenant_id, [], [])
        logger.info(f"Reset index for tenant {tenant_id}")

    async def stats(self, tenant_id: str) -> IndexStats:
        chunks, embeddings = await self.load(tenant_id)
        sources = list(dict.fromkeys(c.source for c in chunks))
        return IndexStats(
            tenant_id=tenant_id,
            chunks=len(chunks),
            dimension=len(embeddings[0].vector) if embeddings else None,
            sources=sources,
        )

    async def list_tenants(self) -> List[str]:
        return await asyncio.to_thread(self.backend.list_tenants)
