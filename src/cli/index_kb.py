"""
Index a tenant's knowledge base.

Usage: index-kb <tenant_id> [--kb-dir knowledge_base] [--clear] [--max-words 500]

Reads every .txt / .md file in <kb-dir>/<tenant_id>/, splits it into
sentence-bounded chunks, embeds each chunk and appends it to the tenant's
index. Without --clear, re-running duplicates chunks already indexed.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from src.config.settings import settings
from src.core.index_store import make_index_backend
from src.core.vector_store import VectorStore
from src.services.embedding_service import EmbeddingService
from src.services.ingestion_service import IngestionPipeline

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index a tenant's knowledge base")
    parser.add_argument("tenant_id", help="Tenant whose knowledge base to index")
    parser.add_argument("--kb-dir", default=settings.KNOWLEDGE_BASE_DIR, help="Root knowledge-base directory")
    parser.add_argument("--clear", action="store_true", help="Reset the tenant's index before indexing")
    parser.add_argument("--max-words", type=int, default=settings.CHUNK_MAX_WORDS, help="Maximum words per chunk")
    parser.add_argument("--backend", default=None, help="Override VECTOR_STORE_BACKEND")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, pipeline: IngestionPipeline = None) -> int:
    if pipeline is None:
        store = VectorStore(make_index_backend(args.backend))
        pipeline = IngestionPipeline(store, EmbeddingService(), max_words=args.max_words)

    kb_dir = Path(args.kb_dir) / args.tenant_id
    logger.info(f"Indexing KB for tenant {args.tenant_id} from {kb_dir}")

    if not kb_dir.is_dir():
        logger.error(f"Directory not found for tenant '{args.tenant_id}' at {kb_dir}")
        return 1

    if args.clear:
        await pipeline.vector_store.reset(args.tenant_id)

    result = await pipeline.ingest_directory(args.tenant_id, kb_dir)
    logger.info(f"Completed indexing for {args.tenant_id}: {result.written} written, {result.failed} failed")
    for failure in result.errors:
        logger.warning(f"  {failure.source}#{failure.position}: {failure.error}")

    return 0 if result.written > 0 else 1


def main(argv=None) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = parse_args(argv)
    try:
        code = asyncio.run(run(args))
    except Exception as e:
        logger.error(f"Indexing failed: {str(e)}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
