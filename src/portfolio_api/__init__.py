"""
portfolio_api

Top-level package for the portfolio website REST API.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "1.0.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal to avoid import-time side effects across the codebase.
