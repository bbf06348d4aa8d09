"""
studio_authz.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation (request id, caller identity) for log enrichment.
"""

# Package marker.
