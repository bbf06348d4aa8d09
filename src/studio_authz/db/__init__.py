"""
studio_authz.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories for the records
  that routes authorize against (users, subscriptions, payments).
"""

# Package marker.
