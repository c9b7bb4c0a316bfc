"""
portfolio_api.auth

Authentication package.

Responsibilities:
- JWT issuing and validation helpers.
- Password hashing for the single admin account.
- FastAPI auth dependency (credential header -> Principal).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# There is exactly one role (authenticated admin); anonymous callers get no Principal.
