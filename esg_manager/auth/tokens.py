import logging
import re
from datetime import datetime, timedelta, timezone

from flask import current_app, g
from jose import JWTError, jwt

from esg_manager import db, login_manager

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_expires_in(value):
    """Turn '7d', '12h', '30m', '45s' or '3600' into a timedelta."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid token lifetime: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_UNITS[unit]: int(amount)})


def create_access_token(user, expires_delta=None):
    """Create a signed JWT access token for ``user``."""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = parse_expires_in(current_app.config["JWT_EXPIRES_IN"])
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "type": "access",
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(
        claims,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_access_token(token):
    """Return the token's claims, or None when it is invalid, expired or not an access token."""
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        return None
    if payload.get("type") != "access":
        return None
    return payload


@login_manager.request_loader
def load_user_from_request(request):
    """Authenticate API calls that carry ``Authorization: Bearer <token>``."""
    from esg_manager.models import User

    header = request.headers.get("Authorization", "")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        g.auth_error = "Invalid or expired token"
        return None

    payload = decode_access_token(token.strip())
    if payload is None:
        g.auth_error = "Invalid or expired token"
        return None
    try:
        user = db.session.get(User, int(payload["sub"]))
    except (KeyError, TypeError, ValueError):
        user = None
    if user is None:
        g.auth_error = "Invalid or expired token"
    return user
