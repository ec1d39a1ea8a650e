"""
delivery_auth.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and the credential store repository.
"""

# Package marker.
