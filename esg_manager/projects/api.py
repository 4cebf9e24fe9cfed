from flask import Blueprint, request
from flask_login import login_required, current_user

from esg_manager.api import success
from esg_manager.key_issues import list_key_issues
from esg_manager.projects import service

projects_api_bp = Blueprint("projects_api", __name__, url_prefix="/api/projects")


@projects_api_bp.route("", methods=["POST"])
@projects_api_bp.route("/", methods=["POST"])
@login_required
def create_project():
    project = service.create_project(current_user, request.get_json(silent=True))
    return success(project.to_dict(include_details=True), "Project created successfully", 201)


@projects_api_bp.route("", methods=["GET"])
@projects_api_bp.route("/", methods=["GET"])
@login_required
def list_projects():
    projects = service.list_projects(current_user)
    return success([p.to_dict() for p in projects])


@projects_api_bp.route("/key-issues")
@login_required
def key_issues():
    return success(list_key_issues())


@projects_api_bp.route("/stats")
@login_required
def stats():
    data = service.project_stats(current_user)
    data["pillar_averages"] = service.pillar_averages(current_user)
    return success(data)


@projects_api_bp.route("/<project_id>", methods=["GET"])
@login_required
def get_project(project_id):
    project = service.get_project(current_user, service.parse_project_id(project_id))
    return success(project.to_dict(include_details=True))


@projects_api_bp.route("/<project_id>", methods=["DELETE"])
@login_required
def delete_project(project_id):
    service.delete_project(current_user, service.parse_project_id(project_id))
    return success(message="Project deleted successfully")
