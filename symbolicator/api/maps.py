"""
Source map endpoints: single-position resolution and cache management.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from symbolicator.models.api_response import EvictionResult, ResolveRequest
from symbolicator.models.frame import ResolvedFrame
from symbolicator.services.map_store import MapUnavailable
from symbolicator.services.pipeline import get_report_assembler
from symbolicator.services.report_assembler import ReportAssembler
from symbolicator.sourcemap.resolver import MappingResolver, PositionUnresolved
from symbolicator.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/maps", tags=["maps"])


@router.post("/resolve", response_model=ResolvedFrame)
async def resolve_position(
    request: ResolveRequest,
    assembler: ReportAssembler = Depends(get_report_assembler),
) -> ResolvedFrame:
    """
    Resolve one minified position to its original source position.

    Raises:
        HTTPException: 404 if the map is unavailable or no segment covers
            the position
    """
    try:
        source_map = await assembler.map_store.get(request.script_url)
    except MapUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        return MappingResolver(source_map).require_position(request.line, request.column)
    except PositionUnresolved as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/stats")
async def get_stats(assembler: ReportAssembler = Depends(get_report_assembler)) -> Dict[str, Any]:
    """Map store cache statistics and resolution metrics."""
    return {
        "cache": assembler.map_store.stats(),
        "resolution": assembler.metrics.get_metrics_summary(),
    }


@router.delete("/cache", response_model=EvictionResult)
async def evict_maps(
    script_url: Optional[str] = Query(default=None),
    assembler: ReportAssembler = Depends(get_report_assembler),
) -> EvictionResult:
    """Evict one cached map (when ``script_url`` is given) or all of them."""
    if script_url:
        evicted = 1 if assembler.map_store.evict(script_url) else 0
    else:
        evicted = assembler.map_store.clear()

    logger.info(f"Evicted {evicted} cached source maps", extra={"script_url": script_url})
    return EvictionResult(evicted=evicted, script_url=script_url)
