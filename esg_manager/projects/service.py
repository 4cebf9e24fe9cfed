import logging
import math

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError

from esg_manager import db
from esg_manager.api import ConflictError, NotFoundError, ValidationError
from esg_manager.evaluation import trigger_evaluation
from esg_manager.key_issues import resolve_input_type
from esg_manager.models import (
    Evaluation, KeyIssue, PillarScore, Project, ProjectData, PILLARS,
)
from esg_manager.validation import require_valid, validate_project

logger = logging.getLogger(__name__)


def parse_project_id(raw):
    try:
        project_id = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid project ID")
    if project_id <= 0:
        raise ValidationError("Invalid project ID")
    return project_id


def _check_value(issue, value):
    """Return an error message if ``value`` does not fit the issue's input type."""
    criteria = issue.standard.criteria if issue.standard else None
    input_type, options = resolve_input_type(criteria)
    if input_type == "numeric":
        try:
            number = float(value.replace(",", ""))
        except ValueError:
            number = None
        if number is None or "_" in value or not math.isfinite(number):
            return f"Value for '{issue.name}' must be numeric"
        low, high = (criteria or {}).get("min"), (criteria or {}).get("max")
        if low is not None and number < low or high is not None and number > high:
            return f"Value for '{issue.name}' must be between {low} and {high}"
    elif input_type == "dropdown" and options and value not in options:
        return f"Value for '{issue.name}' must be one of the listed options"
    return None


def create_project(user, payload):
    """Validate a submission, store the project with its answers and start its evaluation."""
    cleaned, errors = validate_project(payload)
    require_valid(errors)

    items = cleaned["project_data"]
    wanted = [item["issue_id"] for item in items]
    issues = {i.id: i for i in KeyIssue.query.filter(KeyIssue.id.in_(wanted)).all()}
    for item in items:
        if item["issue_id"] not in issues:
            raise ValidationError(f"Invalid issue_id: {item['issue_id']}")

    value_errors = []
    for index, item in enumerate(items):
        message = _check_value(issues[item["issue_id"]], item["value"])
        if message:
            value_errors.append({"field": f"project_data[{index}]", "message": message})
    require_valid(value_errors)

    project = Project(
        user_id=user.id,
        project_name=cleaned["project_name"],
        industry=cleaned["industry"],
        annual_revenue=cleaned["annual_revenue"],
        description=cleaned["description"],
        status="PENDING",
    )
    db.session.add(project)
    try:
        db.session.flush()
        for item in items:
            db.session.add(ProjectData(
                project_id=project.id, issue_id=item["issue_id"], value=item["value"],
            ))
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.error(f"Create project failed: {e}")
        if "unique" in str(e.orig).lower() or "duplicate" in str(e.orig).lower():
            raise ConflictError("Project already exists")
        raise ValidationError("Invalid reference data provided")

    logger.info(f"Project {project.id} created for user {user.id} with {len(items)} answer(s)")
    trigger_evaluation(project)
    return project


def list_projects(user):
    return (
        Project.query.filter_by(user_id=user.id)
        .order_by(Project.submitted_at.desc(), Project.id.desc())
        .all()
    )


def get_project(user, project_id):
    project = Project.query.filter_by(id=project_id, user_id=user.id).first()
    if project is None:
        raise NotFoundError("Project not found")
    return project


def delete_project(user, project_id):
    project = get_project(user, project_id)
    db.session.delete(project)
    db.session.commit()
    logger.info(f"Project {project_id} deleted by user {user.id}")


def project_stats(user):
    row = (
        db.session.query(
            func.count(Project.id),
            func.sum(case((Project.status == "PENDING", 1), else_=0)),
            func.sum(case((Project.status == "PROCESSING", 1), else_=0)),
            func.sum(case((Project.status == "COMPLETED", 1), else_=0)),
            func.sum(case((Evaluation.status == "PASSED", 1), else_=0)),
            func.sum(case((Evaluation.status == "FAILED", 1), else_=0)),
            func.avg(case((Evaluation.status != "PENDING", Evaluation.overall_score), else_=None)),
        )
        .select_from(Project)
        .outerjoin(Evaluation, Evaluation.project_id == Project.id)
        .filter(Project.user_id == user.id)
        .one()
    )
    total, pending, processing, completed, passed, failed, average = row
    return {
        "total_projects": total or 0,
        "pending_projects": int(pending or 0),
        "processing_projects": int(processing or 0),
        "completed_projects": int(completed or 0),
        "passed_projects": int(passed or 0),
        "failed_projects": int(failed or 0),
        "average_score": round(float(average), 1) if average is not None else 0,
    }


def pillar_averages(user):
    """Average pillar score across the user's finished evaluations, keyed E/S/G."""
    rows = (
        db.session.query(PillarScore.pillar_type, func.avg(PillarScore.score))
        .join(Evaluation, PillarScore.evaluation_id == Evaluation.id)
        .join(Project, Evaluation.project_id == Project.id)
        .filter(Project.user_id == user.id, Evaluation.status != "PENDING")
        .group_by(PillarScore.pillar_type)
        .all()
    )
    averages = {pillar: round(float(avg), 1) for pillar, avg in rows}
    return {p: averages.get(p, 0) for p in PILLARS}
