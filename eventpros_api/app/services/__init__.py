"""
Service layer.

Each service encapsulates the business logic for one domain and owns
its tables.  Services open their own SQLite connection per call and
signal failures with the ``ValueError`` subclasses in ``core.errors``
so that endpoints can map them to HTTP status codes.
"""
