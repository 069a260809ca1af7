"""
Endpoint modules for API v1.

Each module defines an ``APIRouter`` for one domain (accounts, events);
they are aggregated in ``router.py``.
"""
