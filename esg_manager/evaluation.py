"""
Mock ESG Evaluation

There is no real scoring model. Two modes, picked by ``EVALUATION_MODE``:

1. ``pending``: the project is left in PENDING and no evaluation row is
   written. This only flips status.
2. ``random``: an evaluation row is opened, the project moves to PROCESSING
   and, after ``EVALUATION_DELAY`` seconds of simulated work, every answered
   pillar gets a random score. Pillar weights come from the MSCI weights of
   the answered key issues; submitted values are never read.
"""

import logging
import random
import threading
import time
from datetime import datetime, timezone

from flask import current_app

from esg_manager import db
from esg_manager.models import Evaluation, PillarScore, Project, PILLARS

logger = logging.getLogger(__name__)

MODES = ("pending", "random")


def score_submission(entries, rng, threshold):
    """Score answered key issues.

    ``entries`` is an iterable of ``(pillar, msci_weight)`` pairs, one per
    answered issue. Returns ``{"overall_score", "status", "pillars"}`` where
    ``pillars`` lists one dict per answered pillar in E, S, G order.
    """
    grouped = {}
    for pillar, weight in entries:
        bucket = grouped.setdefault(pillar, {"key_count": 0, "total_weight": 0.0})
        bucket["key_count"] += 1
        bucket["total_weight"] += float(weight or 0)

    ordered = [p for p in PILLARS if p in grouped]
    if not ordered:
        return {"overall_score": 0.0, "status": "FAILED", "pillars": []}

    grand_total = sum(grouped[p]["total_weight"] for p in ordered)
    pillars = []
    for pillar in ordered:
        bucket = grouped[pillar]
        score = round(rng.uniform(0, 100), 1)
        if grand_total > 0:
            weight = bucket["total_weight"] / grand_total
        else:
            weight = 1 / len(ordered)
        pillars.append({
            "pillar_type": pillar,
            "score": score,
            "weight": round(weight, 4),
            "pass_status": score >= threshold,
            "key_count": bucket["key_count"],
            "total_weight": round(bucket["total_weight"], 4),
            "weighted_sum": round(score * bucket["total_weight"], 2),
        })

    if grand_total > 0:
        overall = sum(p["score"] * grouped[p["pillar_type"]]["total_weight"] for p in pillars) / grand_total
    else:
        overall = sum(p["score"] for p in pillars) / len(pillars)
    overall = round(overall, 1)

    return {
        "overall_score": overall,
        "status": "PASSED" if overall >= threshold else "FAILED",
        "pillars": pillars,
    }


def _make_rng():
    seed = current_app.config.get("EVALUATION_SEED")
    return random.Random(seed) if seed is not None else random.Random()


def trigger_evaluation(project):
    """Start the mock evaluation for a freshly created project."""
    mode = current_app.config.get("EVALUATION_MODE", "random")
    if mode not in MODES:
        raise ValueError(f"Unknown EVALUATION_MODE {mode!r}, expected one of {', '.join(MODES)}")

    if mode == "pending":
        project.status = "PENDING"
        db.session.commit()
        logger.info(f"Evaluation triggered for project {project.id} - status remains PENDING")
        return None

    evaluation = project.evaluation or Evaluation(project_id=project.id, status="PENDING")
    db.session.add(evaluation)
    project.status = "PROCESSING"
    db.session.commit()

    delay = float(current_app.config.get("EVALUATION_DELAY", 0) or 0)
    if delay > 0:
        app = current_app._get_current_object()
        worker = threading.Thread(
            target=_run_later, args=(app, project.id, delay), daemon=True,
            name=f"evaluation-{project.id}",
        )
        worker.start()
        logger.info(f"Evaluation for project {project.id} scheduled in {delay:g}s")
    else:
        run_evaluation(project.id)
    return evaluation


def _run_later(app, project_id, delay):
    time.sleep(delay)
    with app.app_context():
        try:
            run_evaluation(project_id)
        except Exception:
            logger.exception(f"Background evaluation failed for project {project_id}")
        finally:
            db.session.remove()


def run_evaluation(project_id, rng=None):
    """Write random pillar scores for a project. Returns the Evaluation, or None if the project is gone."""
    project = db.session.get(Project, project_id)
    if project is None:
        logger.warning(f"Project {project_id} was deleted before its evaluation ran")
        return None

    try:
        entries = [(d.issue.pillar, d.issue.msci_weight) for d in project.data.all() if d.issue]
        result = score_submission(
            entries, rng or _make_rng(), current_app.config.get("PASS_THRESHOLD", 60)
        )

        evaluation = project.evaluation
        if evaluation is None:
            evaluation = Evaluation(project_id=project.id)
            db.session.add(evaluation)
            db.session.flush()
        evaluation.pillar_scores.delete()
        for pillar in result["pillars"]:
            evaluation.pillar_scores.append(PillarScore(**pillar))

        evaluation.overall_score = result["overall_score"]
        evaluation.status = result["status"]
        evaluation.completed_at = datetime.now(timezone.utc)
        project.status = "COMPLETED"
        db.session.commit()
    except Exception:
        db.session.rollback()
        project = db.session.get(Project, project_id)
        if project is not None:
            project.status = "FAILED"
            db.session.commit()
        raise

    logger.info(
        f"Evaluation for project {project_id} finished: "
        f"{evaluation.status} ({evaluation.overall_score})"
    )
    return evaluation


def evaluate_stuck_projects():
    """Re-run scoring for projects left in PROCESSING (e.g. after a restart). Returns the count."""
    ids = [pid for (pid,) in db.session.query(Project.id).filter_by(status="PROCESSING").all()]
    for project_id in ids:
        run_evaluation(project_id)
    return len(ids)
