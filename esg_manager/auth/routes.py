from urllib.parse import urlsplit

from flask import Blueprint, render_template, redirect, url_for, flash, request, g, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from esg_manager import login_manager, is_api_request
from esg_manager.api import ApiError
from esg_manager.auth.service import authenticate, register_user

auth_bp = Blueprint("auth", __name__)


@login_manager.unauthorized_handler
def unauthorized():
    if is_api_request():
        message = g.get("auth_error", "Access denied. No token provided.")
        return jsonify({"success": False, "message": message}), 401
    flash("Please log in to access this page.", "info")
    return redirect(url_for("auth.login", next=request.full_path.rstrip("?")))


def _safe_next(target):
    """Only follow relative redirects back into this site."""
    if not target:
        return None
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or not target.startswith("/"):
        return None
    return target


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.index"))
    if request.method == "POST":
        try:
            user = authenticate(request.form)
        except ApiError as e:
            flash(e.message, "danger")
        else:
            login_user(user, remember=bool(request.form.get("remember")))
            return redirect(_safe_next(request.args.get("next")) or url_for("dashboard.index"))
    return render_template("auth/login.html", email=request.form.get("email", ""))


@auth_bp.route("/register", methods=["GET", "POST"])
def register():
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.index"))
    if request.method == "POST":
        if request.form.get("password", "") != request.form.get("confirm_password", ""):
            flash("Passwords do not match.", "danger")
        else:
            try:
                user = register_user(request.form)
            except ApiError as e:
                for err in e.errors or []:
                    flash(err["message"], "danger")
                if not e.errors:
                    flash(e.message, "danger")
            else:
                login_user(user)
                flash("Account created. Welcome!", "success")
                return redirect(url_for("dashboard.index"))
    return render_template("auth/register.html", form=request.form)


@auth_bp.route("/logout")
@login_required
def logout():
    logout_user()
    flash("You have been logged out.", "info")
    return redirect(url_for("auth.login"))
