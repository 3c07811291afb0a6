"""
onedosh_api.services

Service layer (transaction owners).

Responsibilities:
- Orchestrate repositories and provider clients for each domain.
- Own commit/rollback boundaries.
"""

# Package marker.
