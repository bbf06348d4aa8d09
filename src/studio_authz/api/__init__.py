"""
studio_authz.api

API package for the studio platform.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and error rendering.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers stay thin: guard, project the input, call a repository, project the
# output.
