"""
onedosh_api.auth

Authentication/authorization package.

Responsibilities:
- JWT and password/PIN hashing helpers.
- FastAPI auth dependencies (Principal, RBAC, current user, transaction PIN guard).
"""

# Package marker.
