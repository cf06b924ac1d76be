"""
Top‑level package for the EventPros API.

This file makes ``eventpros_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``eventpros_api.app.main``.  All functionality lives in submodules
under ``app``.
"""

__all__ = []
