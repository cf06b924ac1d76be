"""
API package.

``router`` aggregates the per‑domain routers found in ``endpoints``.
"""
