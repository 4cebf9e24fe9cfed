from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_required, current_user

from esg_manager.api import ApiError, NotFoundError
from esg_manager.key_issues import INDUSTRIES, key_issues_by_pillar
from esg_manager.models import PILLAR_NAMES
from esg_manager.projects import service

projects_bp = Blueprint("projects", __name__, url_prefix="/projects")


def _form_to_payload(form):
    """Turn the submission form into the same payload the JSON API accepts."""
    project_data = []
    for key, value in form.items():
        if not key.startswith("issue_") or not value.strip():
            continue
        issue_id = key[len("issue_"):]
        if issue_id.isdigit():
            project_data.append({"issue_id": int(issue_id), "value": value})
    return {
        "project_name": form.get("project_name", ""),
        "industry": form.get("industry", ""),
        "annual_revenue": form.get("annual_revenue", ""),
        "description": form.get("description", ""),
        "project_data": project_data,
    }


@projects_bp.route("/new", methods=["GET", "POST"])
@login_required
def create():
    if request.method == "POST":
        try:
            project = service.create_project(current_user, _form_to_payload(request.form))
        except ApiError as e:
            for err in e.errors or []:
                flash(err["message"], "danger")
            if not e.errors:
                flash(e.message, "danger")
        else:
            flash("Project submitted for evaluation.", "success")
            return redirect(url_for("projects.view", project_id=project.id))

    return render_template(
        "projects/create.html",
        industries=INDUSTRIES,
        issues_by_pillar=key_issues_by_pillar(),
        pillar_names=PILLAR_NAMES,
        form=request.form,
    )


@projects_bp.route("/<int:project_id>")
@login_required
def view(project_id):
    try:
        project = service.get_project(current_user, project_id)
    except NotFoundError:
        flash("Project not found.", "danger")
        return redirect(url_for("dashboard.index"))

    answers = {}
    for item in project.data.all():
        answers.setdefault(item.issue.pillar, []).append(item)

    return render_template(
        "projects/detail.html",
        project=project,
        evaluation=project.evaluation,
        answers=answers,
        pillar_names=PILLAR_NAMES,
    )


@projects_bp.route("/<int:project_id>/delete", methods=["POST"])
@login_required
def delete(project_id):
    try:
        service.delete_project(current_user, project_id)
    except NotFoundError:
        flash("Project not found.", "danger")
    else:
        flash("Project deleted.", "success")
    return redirect(url_for("dashboard.index"))
