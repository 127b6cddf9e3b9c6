from typing import List

from fastapi import APIRouter
from .endpoints import (
    health_check,
    list_tenants,
    get_index_stats,
    ingest_document,
    upsert_chunk,
    search_index,
    reset_index,
    start_call,
    handle_turn,
    end_call,
)
from src.core.assistant import TurnResult
from src.core.models import Chunk, IndexStats, IngestionResult, SearchResult
from .models import GreetingOut

router = APIRouter()

router.add_api_route("/voice/health", health_check, methods=["GET"])

# Knowledge-base administration
router.add_api_route("/kb/tenants", list_tenants, methods=["GET"])
router.add_api_route("/kb/{tenant_id}/stats", get_index_stats, methods=["GET"], response_model=IndexStats)
router.add_api_route("/kb/{tenant_id}/documents", ingest_document, methods=["POST"], response_model=IngestionResult)
router.add_api_route("/kb/{tenant_id}/chunks", upsert_chunk, methods=["POST"], response_model=Chunk, status_code=201)
router.add_api_route("/kb/{tenant_id}/search", search_index, methods=["POST"], response_model=List[SearchResult])
router.add_api_route("/kb/{tenant_id}", reset_index, methods=["DELETE"])

# Text-level conversation turns
router.add_api_route("/assistant/{tenant_id}/calls/{call_sid}/start", start_call, methods=["POST"], response_model=GreetingOut)
router.add_api_route("/assistant/{tenant_id}/calls/{call_sid}/turn", handle_turn, methods=["POST"], response_model=TurnResult)
router.add_api_route("/assistant/{tenant_id}/calls/{call_sid}/end", end_call, methods=["POST"])
