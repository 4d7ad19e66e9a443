"""Authentication helpers for lanwake: CSRF tokens (itsdangerous) and basic auth."""

import base64
import binascii
import secrets
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, TimestampSigner

CSRF_COOKIE_NAME = "lanwake_csrf"
CSRF_HEADER_NAME = "x-csrf-token"
DEFAULT_MAX_AGE = 86400  # 24 hours
BASIC_REALM = "Wake-on-LAN"


def generate_secret() -> str:
    """Generate a cryptographically secure 32-byte hex secret for cookie signing."""
    return secrets.token_hex(32)


def generate_csrf_token() -> str:
    return secrets.token_hex(32)


def make_csrf_cookie(token: str, secret: str) -> str:
    """
    Sign a CSRF token for storage in a cookie.

    Args:
        token: Plain CSRF token handed to the client.
        secret: Hex secret from config (auth.session_secret).

    Returns:
        Signed string to set as the cookie value.
    """
    signer = TimestampSigner(secret)
    return signer.sign(token).decode()


def read_csrf_cookie(cookie: str, secret: str, max_age: int = DEFAULT_MAX_AGE) -> Optional[str]:
    """Return the CSRF token held in a signed cookie, or None if invalid or expired."""
    if not cookie:
        return None
    signer = TimestampSigner(secret)
    try:
        return signer.unsign(cookie, max_age=max_age).decode()
    except (BadSignature, SignatureExpired):
        return None


def validate_csrf(
    header_token: str, cookie: str, secret: str, max_age: int = DEFAULT_MAX_AGE
) -> bool:
    """
    Check a request's CSRF header against the token in its signed cookie.

    Args:
        header_token: Value of the X-CSRF-Token request header.
        cookie: Value of the CSRF cookie.
        secret: Hex secret from config (auth.session_secret).
        max_age: Maximum cookie age in seconds.

    Returns:
        True if both are present and match.
    """
    expected = read_csrf_cookie(cookie, secret, max_age=max_age)
    if not expected or not header_token:
        return False
    return secrets.compare_digest(expected, header_token)


def check_basic_auth(authorization: str, username: str, password: str) -> bool:
    """Verify an ``Authorization: Basic ...`` header against configured credentials."""
    scheme, _, encoded = authorization.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return False
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return False
    user, sep, pw = decoded.partition(":")
    if not sep:
        return False
    user_ok = secrets.compare_digest(user.encode(), username.encode())
    pw_ok = secrets.compare_digest(pw.encode(), password.encode())
    return user_ok and pw_ok
