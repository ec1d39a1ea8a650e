"""
delivery_auth.services

Service layer package.

Responsibilities:
- Registration/login orchestration and the restaurant-operator approval flow.
- Own transaction boundaries (commit/rollback) for API handlers.
"""

# Package marker.
