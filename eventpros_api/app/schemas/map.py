"""
Pydantic models for the contractor map.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .common import Coordinates


class MapPoint(BaseModel):
    id: str = Field(..., examples=["contractor-1"])
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    company_name: Optional[str] = None
    service_types: List[str] = Field(default_factory=list)
    is_verified: bool = False
    rating: Optional[float] = Field(None, ge=0, le=5)


class Bounds(BaseModel):
    north: float = Field(..., ge=-90, le=90)
    south: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)
    west: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def check_latitudes(self):
        if self.south > self.north:
            raise ValueError("south must not exceed north")
        return self

    def contains(self, lat: float, lng: float) -> bool:
        if not (self.south <= lat <= self.north):
            return False
        if self.west <= self.east:
            return self.west <= lng <= self.east
        # Viewport crosses the antimeridian
        return lng >= self.west or lng <= self.east


class Cluster(BaseModel):
    id: str
    centroid: Coordinates
    bounds: Bounds
    member_ids: List[str]
    count: int
    service_types: List[str]
    average_rating: Optional[float] = None
    has_verified: bool = False


class ClusterRequest(BaseModel):
    points: List[MapPoint]
    zoom: int = Field(..., ge=0, le=22)
    bounds: Optional[Bounds] = None


class ClusterResult(BaseModel):
    zoom: int
    clusters: List[Cluster]
    pins: List[MapPoint]
    total_points: int
