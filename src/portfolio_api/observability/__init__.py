"""
portfolio_api.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation and request/response audit logging.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Metrics/tracing exporters can be added here without touching route logic.
