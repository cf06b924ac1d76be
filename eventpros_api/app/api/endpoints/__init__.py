"""
Per‑domain endpoint modules.

Each module exposes a ``router`` that ``api.router`` includes under its
own prefix.
"""
