import logging

from flask import Blueprint, current_app
from sqlalchemy import func, text

from esg_manager import db
from esg_manager.api import ForbiddenError, success
from esg_manager.models import (
    Evaluation, KeyIssue, MSCIStandard, PillarScore, Project, ProjectData, User,
)

logger = logging.getLogger(__name__)

dev_api_bp = Blueprint("dev_api", __name__, url_prefix="/api/dev")

SEQUENCED_MODELS = (User, MSCIStandard, KeyIssue, Project, ProjectData, Evaluation, PillarScore)


@dev_api_bp.before_request
def development_only():
    if current_app.config.get("APP_ENV") != "development":
        raise ForbiddenError("This endpoint is only available in development mode")


def _is_postgres():
    return db.engine.dialect.name == "postgresql"


@dev_api_bp.route("/sequence-info")
def sequence_info():
    tables = []
    for model in SEQUENCED_MODELS:
        row_count, max_id = db.session.query(func.count(model.id), func.max(model.id)).one()
        tables.append({
            "table": model.__tablename__,
            "row_count": row_count,
            "max_id": max_id,
        })
    return success({"dialect": db.engine.dialect.name, "tables": tables})


@dev_api_bp.route("/reset-sequences", methods=["POST"])
def reset_sequences():
    """Realign id sequences with the current MAX(id) of every table (PostgreSQL only)."""
    results = []
    for model in SEQUENCED_MODELS:
        table = model.__tablename__
        if not _is_postgres():
            results.append({"table": table, "status": "skipped"})
            continue
        db.session.execute(text(
            f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
            f"COALESCE((SELECT MAX(id) FROM {table}), 0) + 1, false)"
        ))
        results.append({"table": table, "status": "reset"})
    db.session.commit()
    logger.info(f"Sequence reset: {results}")
    return success(results, "All sequences reset successfully")
