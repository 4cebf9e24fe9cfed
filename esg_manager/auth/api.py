from flask import Blueprint, request
from flask_login import login_required, current_user

from esg_manager.api import success
from esg_manager.auth.service import authenticate, register_user
from esg_manager.auth.tokens import create_access_token

auth_api_bp = Blueprint("auth_api", __name__, url_prefix="/api/auth")


def _auth_payload(user):
    return {"user": user.to_dict(), "token": create_access_token(user)}


@auth_api_bp.route("/register", methods=["POST"])
def register():
    user = register_user(request.get_json(silent=True))
    return success(_auth_payload(user), "User registered successfully", 201)


@auth_api_bp.route("/login", methods=["POST"])
def login():
    user = authenticate(request.get_json(silent=True))
    return success(_auth_payload(user), "Login successful")


@auth_api_bp.route("/profile")
@login_required
def profile():
    return success(current_user.to_dict())
