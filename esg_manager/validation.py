"""
Request validation for registration, login and project submissions.

Each ``validate_*`` function returns ``(cleaned, errors)`` where ``errors`` is a
list of ``{"field": ..., "message": ...}`` dicts. ``require_valid`` raises a
``ValidationError`` carrying that list when it is non-empty.
"""

import re
from collections.abc import Mapping

from esg_manager.api import ValidationError

MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 50
MAX_PROJECT_NAME_LENGTH = 255
MAX_INDUSTRY_LENGTH = 100

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _error(field, message):
    return {"field": field, "message": message}


def _text(data, *keys):
    """First present value among ``keys``, stripped. Non-strings come back as-is."""
    for key in keys:
        if key in data and data[key] is not None:
            value = data[key]
            return value.strip() if isinstance(value, str) else value
    return ""


def normalize_email(email):
    return (email or "").strip().lower()


def is_valid_email(email):
    return bool(email) and bool(EMAIL_RE.match(email))


def validate_password(password):
    """Check password meets minimum strength requirements."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"[0-9]", password)):
        return "Password must contain at least one uppercase letter, one lowercase letter, and one number"
    return None


def require_valid(errors):
    if errors:
        raise ValidationError("Validation failed", errors=errors)


def _body(data):
    """Missing bodies validate as empty; anything but a JSON object is rejected outright."""
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        require_valid([_error("body", "Request body must be a JSON object")])
    return data


def validate_registration(data):
    data = _body(data)
    errors = []

    first_name = _text(data, "firstName", "first_name")
    last_name = _text(data, "lastName", "last_name")
    for field, label, value in (
        ("firstName", "First name", first_name),
        ("lastName", "Last name", last_name),
    ):
        if not isinstance(value, str) or not value:
            errors.append(_error(field, f"{label} is required"))
        elif len(value) > MAX_NAME_LENGTH:
            errors.append(_error(field, f"{label} must be less than {MAX_NAME_LENGTH} characters"))

    email = _text(data, "email")
    email = normalize_email(email) if isinstance(email, str) else ""
    if not is_valid_email(email):
        errors.append(_error("email", "Please provide a valid email"))

    password = data.get("password")
    if not isinstance(password, str) or not password:
        errors.append(_error("password", "Password is required"))
    else:
        pw_error = validate_password(password)
        if pw_error:
            errors.append(_error("password", pw_error))

    cleaned = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "password": password,
    }
    return cleaned, errors


def validate_login(data):
    data = _body(data)
    errors = []

    email = _text(data, "email")
    email = normalize_email(email) if isinstance(email, str) else ""
    if not is_valid_email(email):
        errors.append(_error("email", "Please provide a valid email"))

    password = data.get("password")
    if not isinstance(password, str) or not password:
        errors.append(_error("password", "Password is required"))

    return {"email": email, "password": password}, errors


def _parse_revenue(value):
    if value is None or value == "":
        return None, None
    if isinstance(value, bool):
        return None, "Annual revenue must be a number"
    try:
        revenue = float(value)
    except (TypeError, ValueError):
        return None, "Annual revenue must be a number"
    if revenue < 0:
        return None, "Annual revenue cannot be negative"
    return revenue, None


def validate_project(data):
    data = _body(data)
    errors = []

    project_name = _text(data, "project_name")
    if not isinstance(project_name, str) or not project_name:
        errors.append(_error("project_name", "Project name is required"))
    elif len(project_name) > MAX_PROJECT_NAME_LENGTH:
        errors.append(_error("project_name", f"Project name must be less than {MAX_PROJECT_NAME_LENGTH} characters"))

    industry = _text(data, "industry")
    if not isinstance(industry, str) or not industry:
        errors.append(_error("industry", "Industry is required"))
    elif len(industry) > MAX_INDUSTRY_LENGTH:
        errors.append(_error("industry", f"Industry must be less than {MAX_INDUSTRY_LENGTH} characters"))

    description = data.get("description")
    if description is not None and not isinstance(description, str):
        errors.append(_error("description", "Description must be a string"))
        description = None
    description = (description or "").strip() or None

    annual_revenue, revenue_error = _parse_revenue(data.get("annual_revenue"))
    if revenue_error:
        errors.append(_error("annual_revenue", revenue_error))

    items = []
    project_data = data.get("project_data")
    if not isinstance(project_data, list) or not project_data:
        errors.append(_error("project_data", "Project data is required"))
    else:
        seen = set()
        for index, item in enumerate(project_data):
            field = f"project_data[{index}]"
            if not isinstance(item, dict):
                errors.append(_error(field, "Each project data item must have issue_id and non-empty value"))
                continue
            issue_id = item.get("issue_id")
            value = item.get("value")
            if isinstance(issue_id, str) and issue_id.isdigit():
                issue_id = int(issue_id)
            if isinstance(issue_id, bool) or not isinstance(issue_id, int) or issue_id <= 0:
                errors.append(_error(field, "Each project data item must have issue_id and non-empty value"))
                continue
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)
            if not isinstance(value, str) or not value.strip():
                errors.append(_error(field, "Each project data item must have issue_id and non-empty value"))
                continue
            if issue_id in seen:
                errors.append(_error(field, f"Duplicate issue_id: {issue_id}"))
                continue
            seen.add(issue_id)
            items.append({"issue_id": issue_id, "value": value.strip()})

    cleaned = {
        "project_name": project_name,
        "industry": industry,
        "description": description,
        "annual_revenue": annual_revenue,
        "project_data": items,
    }
    return cleaned, errors
