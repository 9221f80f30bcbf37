from __future__ import annotations

import logging

from finance_tracker.errors import InvalidToken, Unauthorized
from finance_tracker.security import TokenIssuer

logger = logging.getLogger(__name__)


def extract_bearer_token(header_value: str | None) -> str | None:
    if not header_value:
        return None
    parts = header_value.split(None, 1)
    if parts and parts[0].lower() == "bearer":
        parts = parts[1:]
    return parts[0].strip() if parts else None


def authorize(raw: str | None, issuer: TokenIssuer) -> int:
    """Turn a raw bearer credential into the caller's user id.

    *raw* may be the bare token or a full ``Authorization`` header value.
    Raises ``Unauthorized`` when nothing was presented and ``InvalidToken``
    when the token fails verification.
    """
    token = extract_bearer_token(raw)
    if token is None:
        logger.debug("Rejected request without a bearer token")
        raise Unauthorized()
    try:
        return issuer.verify(token)
    except InvalidToken:
        logger.debug("Rejected request with an invalid bearer token")
        raise
