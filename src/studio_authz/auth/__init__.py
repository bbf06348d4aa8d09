"""
studio_authz.auth

Authentication package.

Responsibilities:
- Bearer token issuing and validation.
- Password hashing.
- FastAPI dependency that turns a request into an `Identity`.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Authentication only establishes *who* is calling; every *may they* question
# is answered by `studio_authz.authz`.
