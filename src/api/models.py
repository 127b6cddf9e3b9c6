from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from src.core.models import ChunkMetadata


class DocumentIn(BaseModel):
    source: str = Field(min_length=1)
    text: str


class ChunkIn(BaseModel):
    embedding: List[float] = Field(min_length=1)
    metadata: ChunkMetadata


class SearchRequest(BaseModel):
    """Search by a precomputed embedding or by text embedded on the server"""
    embedding: Optional[List[float]] = None
    query: Optional[str] = None
    k: int = Field(default=3, ge=0, le=50)

    @model_validator(mode="after")
    def check_one_query(self):
        if (self.embedding is None) == (self.query is None):
            raise ValueError("Provide exactly one of 'embedding' or 'query'")
        return self


class TurnIn(BaseModel):
    transcript: str


class GreetingOut(BaseModel):
    call_sid: str
    greeting: str
