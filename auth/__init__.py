"""
Authorization for the ingestion routes.
"""

from auth.tokens import authorize, require_token

__all__ = ["authorize", "require_token"]
