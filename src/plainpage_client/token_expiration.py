"""Reading the expiry claim of access tokens.

The client never verifies tokens, that is the server's job. It only peeks at
the ``exp`` claim to refresh a token shortly before the server would reject it.
"""

import json
import time
from typing import Optional

from jwt.utils import base64url_decode

# Refresh the token if it expires within this many seconds. This only has to
# cover request latency. Clock skew between client and server is not
# accounted for, the 401 handling covers that case.
TOKEN_EXPIRATION_BUFFER = 5


def get_token_expiration(token: str) -> int:
    """Return the ``exp`` claim of a token as unix timestamp.

    Args:
        token: Access token (JWT)

    Returns:
        Expiration timestamp, or 0 if the token is empty, malformed or has no
        numeric ``exp`` claim
    """
    if not token:
        return 0

    # only the payload segment is read, header and signature are left alone
    try:
        payload = json.loads(base64url_decode(token.split(".")[1]))
    except (IndexError, ValueError):
        return 0

    if not isinstance(payload, dict):
        return 0
    exp = payload.get("exp")
    # bool is a subclass of int, but `"exp": true` is not a timestamp
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return 0
    try:
        return int(exp)
    except (OverflowError, ValueError):
        # Infinity and NaN are valid JSON for Python
        return 0


def is_token_expiring_soon(
    token: str,
    buffer_seconds: int = TOKEN_EXPIRATION_BUFFER,
    now: Optional[float] = None,
) -> bool:
    """Check if a token is expired or will expire within ``buffer_seconds``.

    Tokens without a known expiration are never considered expiring.
    """
    exp = get_token_expiration(token)
    if exp == 0:
        return False

    if now is None:
        now = time.time()
    return exp - int(now) < buffer_seconds
