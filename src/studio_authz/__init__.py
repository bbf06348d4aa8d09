"""
studio_authz

Top-level package for the studio platform authorization service.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal; the feature catalog and projection tables are built
# on import of `studio_authz.authz`, not here.
