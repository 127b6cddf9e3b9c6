from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return uuid.uuid4().hex


class Chunk(BaseModel):
    """A fragment of knowledge-base text, the unit of retrieval"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    tenant_id: str
    source: str
    position: int = Field(ge=0)
    text: str


class EmbeddingRecord(BaseModel):
    """Vector for the chunk at the same ordinal position in the tenant's index"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    tenant_id: str
    vector: List[float]
    chunk_id: str


class ChunkMetadata(BaseModel):
    source: str
    text: str
    position: Optional[int] = Field(default=None, ge=0)


class SearchResult(BaseModel):
    score: float
    chunk: Chunk


class ChunkFailure(BaseModel):
    source: str
    position: int
    error: str


class IngestionResult(BaseModel):
    written: int = 0
    failed: int = 0
    errors: List[ChunkFailure] = Field(default_factory=list)

    def merge(self, other: "IngestionResult") -> "IngestionResult":
        return IngestionResult(
            written=self.written + other.written,
            failed=self.failed + other.failed,
            errors=self.errors + other.errors,
        )


class IndexStats(BaseModel):
    tenant_id: str
    chunks: int
    dimension: Optional[int] = None
    sources: List[str] = Field(default_factory=list)
