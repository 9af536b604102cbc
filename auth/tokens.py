"""
Shared-secret token checks for the ingestion routes.
"""

import hmac
import logging
from typing import Optional

from errors.exceptions import authorization_failure

logger = logging.getLogger(__name__)


def authorize(presented: Optional[str], expected: str) -> bool:
    """
    Compare a caller-supplied token with the configured secret.

    Equality is exact on the UTF-8 bytes: no trimming, case-folding or
    other normalization. The comparison time does not depend on where the
    first differing byte is. A missing token never matches.
    """
    if presented is None:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


def require_token(presented: Optional[str], expected: str, route: str) -> None:
    """
    Raise AUTHORIZATION_FAILURE unless the presented token matches.

    Args:
        presented: Token taken from the request, or None if absent
        expected: Configured secret for the route
        route: Route name used in the log entry

    Raises:
        AppException: With ErrorCode.AUTHORIZATION_FAILURE
    """
    if authorize(presented, expected):
        return

    reason = "missing_token" if presented is None else "token_mismatch"
    logger.warning(
        f"Rejected {route} request: {reason}",
        extra={"extra_data": {"route": route, "reason": reason}}
    )
    raise authorization_failure(details={"route": route, "reason": reason})
