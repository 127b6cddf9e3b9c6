"""
Durable per-tenant storage for chunks and their embeddings.

A tenant's index is a pair of ordered sequences (chunks, embeddings) where the
embedding at position i belongs to the chunk at position i. Backends persist
both sequences together so a reader never sees one without the other.

Backends:
    local - one JSON snapshot file per tenant, replaced atomically
    log   - append-only JSON Lines file per tenant, materialized by replay
    gcs   - one JSON snapshot object per tenant in a Cloud Storage bucket
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import List, Tuple

from pydantic import ValidationError

from src.config.settings import settings
from src.core.errors import CorruptIndex, IndexAbsent, PersistenceError
from src.core.models import Chunk, EmbeddingRecord

logger = logging.getLogger(__name__)

TENANT_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")

Index = Tuple[List[Chunk], List[EmbeddingRecord]]


def validate_tenant_id(tenant_id: str) -> str:
    if not tenant_id or not TENANT_ID_PATTERN.fullmatch(tenant_id):
        raise ValueError(f"Invalid tenant id: {tenant_id!r}")
    return tenant_id


def check_index(tenant_id: str, chunks: List[Chunk], embeddings: List[EmbeddingRecord]) -> None:
    """Raise CorruptIndex unless the pair of sequences forms a consistent index"""
    if len(chunks) != len(embeddings):
        raise CorruptIndex(tenant_id, f"{len(chunks)} chunks but {len(embeddings)} embeddings")

    dimension = None
    for position, (chunk, record) in enumerate(zip(chunks, embeddings)):
        if chunk.tenant_id != tenant_id or record.tenant_id != tenant_id:
            raise CorruptIndex(tenant_id, f"entry {position} belongs to another tenant")
        if record.chunk_id != chunk.id:
            raise CorruptIndex(tenant_id, f"embedding {position} does not reference chunk {chunk.id}")
        if dimension is None:
            dimension = len(record.vector)
        elif len(record.vector) != dimension:
            raise CorruptIndex(
                tenant_id,
                f"embedding {position} has length {len(record.vector)}, expected {dimension}",
            )


def dump_snapshot(tenant_id: str, chunks: List[Chunk], embeddings: List[EmbeddingRecord]) -> str:
    return json.dumps({
        "tenant_id": tenant_id,
        "chunks": [c.model_dump() for c in chunks],
        "embeddings": [e.model_dump() for e in embeddings],
    })


def parse_snapshot(tenant_id: str, raw: str) -> Index:
    try:
        data = json.loads(raw)
        chunks = [Chunk.model_validate(c) for c in data["chunks"]]
        embeddings = [EmbeddingRecord.model_validate(e) for e in data["embeddings"]]
    except (ValueError, KeyError, TypeError, ValidationError) as e:
        raise CorruptIndex(tenant_id, str(e)) from e
    check_index(tenant_id, chunks, embeddings)
    return chunks, embeddings


def write_atomic(path: Path, content: str) -> None:
    """Write to a temp file beside path, then move it into place"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class IndexBackend:
    """Storage capability set shared by every backend: read, save, list_tenants"""

    supports_append = False

    def load(self, tenant_id: str) -> Index:
        """Load a tenant's index; a tenant with nothing stored gets two empty sequences"""
        validate_tenant_id(tenant_id)
        try:
            return self.read(tenant_id)
        except IndexAbsent:
            logger.info(f"No index stored for tenant {tenant_id}, treating as empty")
            return [], []

    def read(self, tenant_id: str) -> Index:
        raise NotImplementedError

    def save(self, tenant_id: str, chunks: List[Chunk], embeddings: List[EmbeddingRecord]) -> None:
        raise NotImplementedError

    def append(self, tenant_id: str, chunk: Chunk, embedding: EmbeddingRecord) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not support append")

    def list_tenants(self) -> List[str]:
        raise NotImplementedError


class LocalFileIndexBackend(IndexBackend):
    def __init__(self, root: str):
        self.root = Path(root)

    def path_for(self, tenant_id: str) -> Path:
        return self.root / f"{validate_tenant_id(tenant_id)}.json"

    def read(self, tenant_id: str) -> Index:
        path = self.path_for(tenant_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise IndexAbsent(tenant_id)
        return parse_snapshot(tenant_id, raw)

    def save(self, tenant_id: str, chunks: List[Chunk], embeddings: List[EmbeddingRecord]) -> None:
        path = self.path_for(tenant_id)
        try:
            write_atomic(path, dump_snapshot(tenant_id, chunks, embeddings))
        except OSError as e:
            logger.error(f"Failed to write index {path}: {str(e)}")
            raise PersistenceError(f"Failed to write index for tenant '{tenant_id}': {e}") from e
        logger.info(f"Saved {len(chunks)} chunks for tenant {tenant_id} to {path}")

    def list_tenants(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.stem for p in self.root.glob("*.json"))


class AppendLogIndexBackend(IndexBackend):
    """
    One {"chunk": ..., "embedding": ...} record per line.

    A final line without its newline is an append still in flight and is
    skipped; any complete line that fails to parse makes the index corrupt.
    """

    supports_append = True

    def __init__(self, root: str):
        self.root = Path(root)

    def path_for(self, tenant_id: str) -> Path:
        return self.root / f"{validate_tenant_id(tenant_id)}.jsonl"

    @staticmethod
    def dump_record(chunk: Chunk, embedding: EmbeddingRecord) -> str:
        return json.dumps({"chunk": chunk.model_dump(), "embedding": embedding.model_dump()}) + "\n"

    def read(self, tenant_id: str) -> Index:
        path = self.path_for(tenant_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise IndexAbsent(tenant_id)

        lines = raw.split("\n")
        # Everything after the last newline is either empty or a partial append
        complete, partial = lines[:-1], lines[-1]
        if partial:
            logger.warning(f"Ignoring incomplete trailing record in {path}")

        chunks, embeddings = [], []
        for line_no, line in enumerate(complete, start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
                chunks.append(Chunk.model_validate(record["chunk"]))
                embeddings.append(EmbeddingRecord.model_validate(record["embedding"]))
            except (ValueError, KeyError, TypeError, ValidationError) as e:
                raise CorruptIndex(tenant_id, f"line {line_no}: {e}") from e

        check_index(tenant_id, chunks, embeddings)
        return chunks, embeddings

    def save(self, tenant_id: str, chunks: List[Chunk], embeddings: List[EmbeddingRecord]) -> None:
        path = self.path_for(tenant_id)
        content = "".join(self.dump_record(c, e) for c, e in zip(chunks, embeddings))
        try:
            write_atomic(path, content)
        except OSError as e:
            logger.error(f"Failed to rewrite log {path}: {str(e)}")
            raise PersistenceError(f"Failed to write index for tenant '{tenant_id}': {e}") from e
        logger.info(f"Rewrote log for tenant {tenant_id} with {len(chunks)} records")

    @staticmethod
    def drop_partial_record(path: Path) -> None:
        """Truncate an unterminated trailing record left by an interrupted append"""
        if not path.exists():
            return
        with open(path, "rb+") as f:
            end = f.seek(0, os.SEEK_END)
            keep = 0
            pos = end
            while pos > 0:
                step = min(4096, pos)
                f.seek(pos - step)
                newline = f.read(step).rfind(b"\n")
                if newline != -1:
                    keep = pos - step + newline + 1
                    break
                pos -= step
            if keep != end:
                logger.warning(f"Dropping {end - keep} bytes of incomplete record from {path}")
                f.truncate(keep)

    def append(self, tenant_id: str, chunk: Chunk, embedding: EmbeddingRecord) -> None:
        path = self.path_for(tenant_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.drop_partial_record(path)
            with open(path, "a", encoding="utf-8") as f:
                f.write(self.dump_record(chunk, embedding))
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            logger.error(f"Failed to append to log {path}: {str(e)}")
            raise PersistenceError(f"Failed to append to index for tenant '{tenant_id}': {e}") from e

    def list_tenants(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.stem for p in self.root.glob("*.jsonl"))


class GCSIndexBackend(IndexBackend):
    INDEX_OBJECT = "index.json"

    def __init__(self, cloud_storage, prefix: str = None):
        self.storage = cloud_storage
        self.prefix = (prefix if prefix is not None else settings.GCS_INDEX_PREFIX).strip("/")

    def object_path(self, tenant_id: str) -> str:
        return self.storage.join(self.prefix, validate_tenant_id(tenant_id), self.INDEX_OBJECT)

    def read(self, tenant_id: str) -> Index:
        raw = self.storage.read_file(self.object_path(tenant_id))
        if raw is None:
            raise IndexAbsent(tenant_id)
        return parse_snapshot(tenant_id, raw)

    def save(self, tenant_id: str, chunks: List[Chunk], embeddings: List[EmbeddingRecord]) -> None:
        path = self.object_path(tenant_id)
        try:
            self.storage.store_file(path, dump_snapshot(tenant_id, chunks, embeddings), content_type="application/json")
        except Exception as e:
            raise PersistenceError(f"Failed to upload index for tenant '{tenant_id}': {e}") from e

    def list_tenants(self) -> List[str]:
        tenants = set()
        for file in self.storage.list_files(prefix=f"{self.prefix}/" if self.prefix else None):
            parts = file["name"].split("/")
            if len(parts) >= 2 and parts[-1] == self.INDEX_OBJECT:
                tenants.add(parts[-2])
        return sorted(tenants)


def make_index_backend(name: str = None, path: str = None) -> IndexBackend:
    """Build the backend selected by VECTOR_STORE_BACKEND"""
    name = (name or settings.VECTOR_STORE_BACKEND).lower()
    path = path or settings.VECTOR_STORE_PATH
    logger.info(f"Using '{name}' vector store backend")

    if name == "local":
        return LocalFileIndexBackend(path)
    if name == "log":
        return AppendLogIndexBackend(path)
    if name == "gcs":
        from src.core.storage import CloudStorage
        return GCSIndexBackend(CloudStorage())
    raise ValueError(f"Unknown vector store backend: {name}")
