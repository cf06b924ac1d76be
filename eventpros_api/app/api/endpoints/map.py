"""
Map endpoints.

``GET /clusters`` clusters the contractors stored in the database;
``POST /clusters`` clusters caller supplied points.  Both are public
so the contractor map can be shown to visitors.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, status

from eventpros_api.app.core.errors import raise_http
from eventpros_api.app.schemas.common import Envelope
from eventpros_api.app.schemas.map import Bounds, ClusterRequest, ClusterResult
from eventpros_api.app.services.cluster_service import ClusterService


router = APIRouter()


@router.get("/clusters", response_model=Envelope[ClusterResult], summary="Cluster stored contractors")
async def contractor_clusters(
    zoom: int = Query(..., ge=0, le=22),
    north: Optional[float] = Query(None, ge=-90, le=90),
    south: Optional[float] = Query(None, ge=-90, le=90),
    east: Optional[float] = Query(None, ge=-180, le=180),
    west: Optional[float] = Query(None, ge=-180, le=180),
    service_type: Optional[str] = Query(None),
    verified_only: bool = Query(False),
) -> Dict[str, Any]:
    """Cluster contractors with coordinates, optionally within a viewport.

    The viewport needs all four of ``north``, ``south``, ``east`` and
    ``west``.
    """
    edges = (north, south, east, west)
    bounds = None
    if any(edge is not None for edge in edges):
        if any(edge is None for edge in edges):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Viewport needs north, south, east and west")
        if south > north:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="south must not exceed north")
        bounds = Bounds(north=north, south=south, east=east, west=west)
    points = await ClusterService.load_contractor_points(service_type=service_type, verified_only=verified_only)
    try:
        return {"data": ClusterService.build_clusters(points, zoom, bounds)}
    except ValueError as e:
        raise_http(e)


@router.post("/clusters", response_model=Envelope[ClusterResult], summary="Cluster supplied points")
async def cluster_points(data: ClusterRequest) -> Dict[str, Any]:
    try:
        return {"data": ClusterService.build_clusters(data.points, data.zoom, data.bounds)}
    except ValueError as e:
        raise_http(e)
