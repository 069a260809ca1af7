"""
HTTP layer.

``deps`` holds the shared dependencies (settings, the auth gate and the
service providers); versioned routers live in subpackages such as
``v1``.
"""
