"""
portfolio_api.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories.
- Translate driver failures into errors the normalizer can classify.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routes talk to repositories only; nothing outside this package builds SQL.
