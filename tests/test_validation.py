"""
Tests for request validation helpers
"""
import pytest

from esg_manager.api import ValidationError
from esg_manager.validation import (
    is_valid_email, normalize_email, require_valid, validate_login,
    validate_password, validate_project, validate_registration,
)


def _fields(errors):
    return [e["field"] for e in errors]


class TestEmail:

    @pytest.mark.parametrize("email", ["a@b.co", "first.last+esg@example.co.th"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@example.com", "@example.com"])
    def test_invalid(self, email):
        assert not is_valid_email(email)

    def test_normalize(self):
        assert normalize_email("  Someone@Example.COM ") == "someone@example.com"
        assert normalize_email(None) == ""


class TestPassword:

    def test_too_short(self):
        assert "at least 8" in validate_password("Ab1")

    def test_needs_each_character_class(self):
        assert validate_password("alllower1") is not None
        assert validate_password("ALLUPPER1") is not None
        assert validate_password("NoDigitsHere") is not None

    def test_strong_enough(self):
        assert validate_password("Sustain4bility") is None


class TestRegistration:

    def test_accepts_snake_case_names(self):
        cleaned, errors = validate_registration({
            "first_name": " Malee ", "last_name": "Srisuk",
            "email": "MALEE@example.com", "password": "Sustain4bility",
        })

        assert errors == []
        assert cleaned["first_name"] == "Malee"
        assert cleaned["email"] == "malee@example.com"

    def test_none_payload(self):
        _, errors = validate_registration(None)

        assert _fields(errors) == ["firstName", "lastName", "email", "password"]

    def test_non_string_values(self):
        _, errors = validate_registration({
            "firstName": 12, "lastName": ["x"], "email": 5, "password": 123456789,
        })

        assert _fields(errors) == ["firstName", "lastName", "email", "password"]


class TestLogin:

    def test_valid(self):
        cleaned, errors = validate_login({"email": " User@Example.com", "password": "x"})

        assert errors == []
        assert cleaned == {"email": "user@example.com", "password": "x"}


class TestProject:

    def _payload(self, **overrides):
        payload = {
            "project_name": "Factory retrofit",
            "industry": "Industrial",
            "project_data": [{"issue_id": 1, "value": "Solar"}],
        }
        payload.update(overrides)
        return payload

    def test_minimal_payload(self):
        cleaned, errors = validate_project(self._payload())

        assert errors == []
        assert cleaned["description"] is None
        assert cleaned["annual_revenue"] is None

    def test_coerces_issue_ids_and_values(self):
        cleaned, errors = validate_project(self._payload(
            project_data=[{"issue_id": "3", "value": 42}, {"issue_id": 4, "value": " 1,200 "}]
        ))

        assert errors == []
        assert cleaned["project_data"] == [
            {"issue_id": 3, "value": "42"},
            {"issue_id": 4, "value": "1,200"},
        ]

    @pytest.mark.parametrize("item", [
        {"value": "x"},
        {"issue_id": 0, "value": "x"},
        {"issue_id": True, "value": "x"},
        {"issue_id": 1, "value": None},
        "not-an-object",
    ])
    def test_bad_items(self, item):
        _, errors = validate_project(self._payload(project_data=[item]))

        assert _fields(errors) == ["project_data[0]"]

    def test_project_data_must_be_a_list(self):
        _, errors = validate_project(self._payload(project_data={"issue_id": 1}))

        assert _fields(errors) == ["project_data"]

    def test_name_length(self):
        _, errors = validate_project(self._payload(project_name="x" * 256))

        assert _fields(errors) == ["project_name"]

    @pytest.mark.parametrize("revenue, expected", [
        ("2500.75", 2500.75),
        (0, 0.0),
        ("", None),
    ])
    def test_revenue_parsing(self, revenue, expected):
        cleaned, errors = validate_project(self._payload(annual_revenue=revenue))

        assert errors == []
        assert cleaned["annual_revenue"] == expected

    @pytest.mark.parametrize("revenue", ["a lot", True, -1])
    def test_bad_revenue(self, revenue):
        _, errors = validate_project(self._payload(annual_revenue=revenue))

        assert _fields(errors) == ["annual_revenue"]

    def test_description_must_be_text(self):
        _, errors = validate_project(self._payload(description=["bullet"]))

        assert _fields(errors) == ["description"]


def test_require_valid_raises_with_errors():
    errors = [{"field": "email", "message": "Please provide a valid email"}]

    with pytest.raises(ValidationError) as exc:
        require_valid(errors)

    assert exc.value.status_code == 400
    assert exc.value.to_dict() == {
        "success": False, "message": "Validation failed", "errors": errors,
    }
    require_valid([])


@pytest.mark.parametrize("validator", [validate_registration, validate_login, validate_project])
@pytest.mark.parametrize("body", [[1, 2], "text", 42])
def test_non_object_bodies_are_rejected(validator, body):
    with pytest.raises(ValidationError) as exc:
        validator(body)

    assert exc.value.status_code == 400
    assert exc.value.errors == [{"field": "body", "message": "Request body must be a JSON object"}]
