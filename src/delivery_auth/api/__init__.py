"""
delivery_auth.api

API package for the auth service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring, error rendering and request/response models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: request parsing + auth + delegation to services.
