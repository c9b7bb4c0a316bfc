"""
portfolio_api.api

API package for the portfolio service.

Responsibilities:
- FastAPI app factory, request pipeline and router modules.
- API-layer dependency wiring, response envelopes and error normalization.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: request validation + auth + delegation to repositories.
