import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from esg_manager import db
from esg_manager.api import AuthenticationError, ValidationError
from esg_manager.models import User
from esg_manager.validation import require_valid, validate_login, validate_registration

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists"


def register_user(data):
    """Create a user from a registration payload. Raises ValidationError on bad input or a taken email."""
    cleaned, errors = validate_registration(data)
    require_valid(errors)

    if find_user_by_email(cleaned["email"]):
        raise ValidationError(DUPLICATE_EMAIL_MESSAGE)

    user = User(
        email=cleaned["email"],
        first_name=cleaned["first_name"],
        last_name=cleaned["last_name"],
    )
    user.set_password(cleaned["password"])
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same address
        db.session.rollback()
        raise ValidationError(DUPLICATE_EMAIL_MESSAGE)

    logger.info(f"Registered user {user.id}")
    return user


def find_user_by_email(email):
    return User.query.filter(func.lower(User.email) == email.strip().lower()).first()


def authenticate(data):
    """Return the user matching a login payload or raise AuthenticationError."""
    cleaned, errors = validate_login(data)
    require_valid(errors)

    user = find_user_by_email(cleaned["email"])
    if user is None:
        raise AuthenticationError("No account found with this email address.")
    if not user.check_password(cleaned["password"]):
        raise AuthenticationError("Invalid email or password. Please check your credentials.")
    return user
