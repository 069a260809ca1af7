"""
Application package.

``core`` holds configuration, persistence, security and logging;
``schemas`` the wire models; ``services`` the business logic; and
``api`` the versioned HTTP routers.  The configured application is
exposed as ``app``.
"""

from .main import app  # noqa: F401
