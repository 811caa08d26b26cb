"""
Cart Module - Dependencies
============================
Guest carts are keyed by an opaque session cookie.
"""

import secrets

from fastapi import Request, Response

from config.settings import CART_COOKIE_NAME, CART_COOKIE_MAX_AGE_DAYS


def get_cart_session(request: Request, response: Response) -> str:
    """Cookie session key; issued on first use."""
    key = request.cookies.get(CART_COOKIE_NAME)
    if key and 16 <= len(key) <= 64:
        return key
    key = secrets.token_urlsafe(24)
    response.set_cookie(
        CART_COOKIE_NAME, key,
        max_age=CART_COOKIE_MAX_AGE_DAYS * 86400,
        httponly=True, samesite="lax",
    )
    return key
