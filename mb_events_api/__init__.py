"""
Top-level package for the MB Events API.

All functionality lives in submodules under ``app``; run the service
with ``python -m mb_events_api``.
"""

__all__ = []
