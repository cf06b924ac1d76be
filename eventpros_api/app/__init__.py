"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Each domain (contractors, events, matching, budget, map,
testimonials) keeps its schemas in ``schemas``, its business logic in
``services`` and its router in ``api/endpoints``.  The three scoring
engines (matching, budget and clustering) are pure functions exposed
through their service classes so that they can be used without a
database.
"""

from .main import app  # noqa: F401
