"""
portfolio_api.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity (the admin user id from the token subject).
    """

    subject: str


# --- Module Notes -----------------------------------------------------------
# Derived per request from the token; never persisted.
