from flask import Blueprint, render_template
from flask_login import login_required, current_user

from esg_manager.models import PILLAR_NAMES
from esg_manager.projects.service import list_projects, pillar_averages, project_stats

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("/")
@login_required
def index():
    return render_template(
        "dashboard/index.html",
        projects=list_projects(current_user),
        stats=project_stats(current_user),
        pillar_averages=pillar_averages(current_user),
        pillar_names=PILLAR_NAMES,
    )
