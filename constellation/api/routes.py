"""API routes for the Constellation Graph backend."""

import logging
import re
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request

from constellation.config import get_settings
from constellation.models.schemas import (
    ConstellationGraph,
    HealthResponse,
    KeywordCreateRequest,
    KeywordCreateResponse,
    KeywordListResponse,
    KeywordUpdate,
    NeighborsResponse,
    RawKeywordRecord,
)
from constellation.services.graph.builder import GraphService
from constellation.services.keyword_store import KeywordStoreError, NotionKeywordStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_store(request: Request) -> NotionKeywordStore:
    return request.app.state.keyword_store


async def _fetch_records(request: Request) -> list[RawKeywordRecord]:
    """Fetch the current keyword snapshot, mapping store failures to 502."""
    try:
        keywords = await _get_store(request).fetch_keywords()
    except KeywordStoreError as e:
        raise HTTPException(status_code=502, detail=f"Keyword store unavailable: {e}")
    return [kw.to_record() for kw in keywords]


_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def _parse_k(raw: str | None, default: int) -> int:
    """
    Parse the k query parameter from its leading integer ("2.5" -> 2, "3x" -> 3).

    Missing, non-numeric or zero values fall back to default.
    """
    match = _LEADING_INT_RE.match(raw or "")
    k = int(match.group(1)) if match else 0
    return k or default


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat())


@router.get("/graph", response_model=ConstellationGraph)
async def get_graph(request: Request):
    """Build, decay and prune the constellation graph from the current keywords."""
    records = await _fetch_records(request)
    service = GraphService(get_settings().graph_config())
    graph = service.build(records)
    logger.info("Served graph: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
    return graph


@router.get("/graph/neighbors/{node_id}", response_model=NeighborsResponse)
async def get_neighbors(request: Request, node_id: str, k: str | None = None):
    """Return the top-k strongest neighbors of a node in the pruned graph."""
    settings = get_settings()
    limit = _parse_k(k, settings.graph_default_neighbors)
    records = await _fetch_records(request)
    service = GraphService(settings.graph_config())
    neighbors = service.neighbors(records, node_id, k=limit)
    return NeighborsResponse(node_id=node_id, neighbors=neighbors)


@router.get("/keywords", response_model=KeywordListResponse)
async def list_keywords(request: Request):
    """Return every usable keyword row from the store."""
    try:
        keywords = await _get_store(request).fetch_keywords()
    except KeywordStoreError as e:
        raise HTTPException(status_code=502, detail=f"Keyword store unavailable: {e}")
    return KeywordListResponse(keywords=keywords, count=len(keywords))


@router.post("/keywords", response_model=KeywordCreateResponse)
async def create_keywords(request: Request, body: KeywordCreateRequest):
    """Write suggested keywords to the store; they start inactive."""
    if not body.keywords:
        raise HTTPException(status_code=400, detail="keywords array is required")
    try:
        page_ids = await _get_store(request).create_keywords(body.keywords)
    except KeywordStoreError as e:
        raise HTTPException(status_code=502, detail=f"Keyword store unavailable: {e}")
    logger.info("Created %d keywords", len(page_ids))
    return KeywordCreateResponse(created=len(page_ids), page_ids=page_ids)


@router.patch("/keywords/{keyword_id}")
async def update_keyword(request: Request, keyword_id: str, body: KeywordUpdate):
    """Update the given fields of one keyword row."""
    try:
        await _get_store(request).update_keyword(keyword_id, body)
    except KeywordStoreError as e:
        raise HTTPException(status_code=502, detail=f"Keyword store unavailable: {e}")
    return {"updated": True, "id": keyword_id}
