"""
Top‑level API router.

This router aggregates the domain routers (users, contractors, events,
matching, budget, map, testimonials, audit) under a single prefix.
When a new domain is added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import (
    audit,
    budget,
    contractors,
    events,
    map,
    matching,
    testimonials,
    users,
)

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(contractors.router, prefix="/contractors", tags=["contractors"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(matching.router, prefix="/matching", tags=["matching"])
router.include_router(budget.router, prefix="/budget", tags=["budget"])
router.include_router(map.router, prefix="/map", tags=["map"])
router.include_router(testimonials.router, prefix="/testimonials", tags=["testimonials"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
