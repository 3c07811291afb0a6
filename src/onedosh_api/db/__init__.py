"""
onedosh_api.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, repositories, seeds and validators.
"""

# Package marker.
