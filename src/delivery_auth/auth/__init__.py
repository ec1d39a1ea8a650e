"""
delivery_auth.auth

Authentication/authorization package.

Responsibilities:
- Password hashing and claims-token helpers.
- The token verifier shared by every service that accepts bearer tokens.
- FastAPI auth dependencies (authenticated principal + role checks).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing here imports the persistence layer directly; the verifier receives a
# principal lookup callable so other services can reuse it with their own store.
