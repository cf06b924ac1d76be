"""
Grid clustering for the contractor map.

Points are bucketed into square cells whose size in degrees matches a
fixed pixel radius at the requested zoom, so clusters shrink as the
user zooms in.  Bucketing is a single pass over the points and the
output is sorted so identical input always produces identical
clusters.
"""

import logging
import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from eventpros_api.app.core.config import settings
from eventpros_api.app.schemas.common import Coordinates
from eventpros_api.app.schemas.map import Bounds, Cluster, ClusterResult, MapPoint
from eventpros_api.app.services.contractor_service import ContractorService


logger = logging.getLogger(__name__)

TILE_SIZE_PX = 256


def cell_size_degrees(zoom: int, radius_px: int) -> float:
    return radius_px * 360.0 / (TILE_SIZE_PX * 2 ** zoom)


def _make_cluster(zoom: int, key: Tuple[int, int], members: List[MapPoint]) -> Cluster:
    members = sorted(members, key=lambda p: p.id)
    lats = [p.lat for p in members]
    lngs = [p.lng for p in members]
    ratings = [p.rating for p in members if p.rating is not None]
    service_types = sorted({s for p in members for s in p.service_types})
    return Cluster(
        id=f"cluster-{zoom}-{key[0]}-{key[1]}",
        centroid=Coordinates(lat=round(sum(lats) / len(lats), 6), lng=round(sum(lngs) / len(lngs), 6)),
        bounds=Bounds(north=max(lats), south=min(lats), east=max(lngs), west=min(lngs)),
        member_ids=[p.id for p in members],
        count=len(members),
        service_types=service_types,
        average_rating=round(sum(ratings) / len(ratings), 2) if ratings else None,
        has_verified=any(p.is_verified for p in members),
    )


class ClusterService:
    """Builds map clusters from contractor locations."""

    @classmethod
    def build_clusters(
        cls,
        points: Sequence[MapPoint],
        zoom: int,
        bounds: Optional[Bounds] = None,
        radius_px: Optional[int] = None,
        max_zoom: Optional[int] = None,
        min_points: Optional[int] = None,
    ) -> ClusterResult:
        """Group ``points`` into clusters for ``zoom``.

        Parameters
        ----------
        points : Sequence[MapPoint]
            Points to cluster.  Duplicate ids are not merged.
        zoom : int
            Map zoom level.  Above ``max_zoom`` every point is a pin.
        bounds : Optional[Bounds]
            Viewport; points outside it are dropped before clustering.
        radius_px, max_zoom, min_points : Optional[int]
            Override the configured clustering parameters.

        Returns
        -------
        ClusterResult
            Clusters ordered by cell and pins ordered by id.
        """
        radius_px = radius_px if radius_px is not None else settings.cluster_radius_px
        max_zoom = max_zoom if max_zoom is not None else settings.cluster_max_zoom
        min_points = min_points if min_points is not None else settings.cluster_min_points
        if zoom < 0:
            raise ValueError("zoom must not be negative")
        if radius_px <= 0:
            raise ValueError("cluster radius must be positive")

        visible = [p for p in points if bounds is None or bounds.contains(p.lat, p.lng)]
        if zoom > max_zoom:
            return ClusterResult(
                zoom=zoom,
                clusters=[],
                pins=sorted(visible, key=lambda p: p.id),
                total_points=len(visible),
            )

        cell = cell_size_degrees(zoom, radius_px)
        cells: Dict[Tuple[int, int], List[MapPoint]] = defaultdict(list)
        for point in visible:
            cells[(math.floor(point.lat / cell), math.floor(point.lng / cell))].append(point)

        clusters: List[Cluster] = []
        pins: List[MapPoint] = []
        for key in sorted(cells):
            members = cells[key]
            if len(members) >= max(min_points, 2):
                clusters.append(_make_cluster(zoom, key, members))
            else:
                pins.extend(members)
        pins.sort(key=lambda p: p.id)
        logger.debug("Clustered %s points at zoom %s into %s clusters", len(visible), zoom, len(clusters))
        return ClusterResult(zoom=zoom, clusters=clusters, pins=pins, total_points=len(visible))

    @classmethod
    async def load_contractor_points(cls, service_type: Optional[str] = None, verified_only: bool = False) -> List[MapPoint]:
        """Map points for contractors that have coordinates."""
        candidates = await ContractorService.load_candidates(verified_only=verified_only)
        points = []
        wanted = service_type.strip().lower() if service_type else None
        for candidate in candidates:
            if candidate["latitude"] is None or candidate["longitude"] is None:
                continue
            service_types = sorted(set(candidate["service_categories"]) | set(candidate["service_types"]))
            if wanted and wanted not in {s.lower() for s in service_types}:
                continue
            points.append(
                MapPoint(
                    id=f"contractor-{candidate['user_id']}",
                    lat=candidate["latitude"],
                    lng=candidate["longitude"],
                    company_name=candidate["company_name"],
                    service_types=service_types,
                    is_verified=candidate["is_verified"],
                    rating=candidate["average_rating"] if candidate["review_count"] else None,
                )
            )
        return points
