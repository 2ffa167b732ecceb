"""
Development auth stub.

Bearer tokens of the form "dev-token:<userId>" identify the caller; anything
else maps to the shared development user.
"""

from typing import Optional

DEV_USER_ID = "dev-user"
DEV_TOKEN_PREFIX = "dev-token:"


def get_user_id_from_token(token: Optional[str]) -> str:
    """
    Resolve the caller's user id from a token.

    Args:
        token: Raw token, without the "Bearer " scheme

    Returns:
        User id
    """
    if not token:
        return DEV_USER_ID

    if token.startswith(DEV_TOKEN_PREFIX):
        return token[len(DEV_TOKEN_PREFIX):].split(":")[0] or DEV_USER_ID

    # TODO: verify and decode JWTs once the identity provider is wired in
    return DEV_USER_ID


def get_user_id_from_authorization(header: Optional[str]) -> str:
    """Resolve the caller's user id from an Authorization header value."""
    if not header:
        return DEV_USER_ID

    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return DEV_USER_ID

    return get_user_id_from_token(token.strip())
