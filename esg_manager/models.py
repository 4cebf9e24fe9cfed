from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from esg_manager import db, login_manager

PILLARS = ("E", "S", "G")
PILLAR_NAMES = {"E": "Environmental", "S": "Social", "G": "Governance"}

PROJECT_STATUSES = ("PENDING", "PROCESSING", "COMPLETED", "FAILED")
EVALUATION_STATUSES = ("PENDING", "PASSED", "FAILED")


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    projects = db.relationship(
        "Project", backref="owner", lazy="dynamic", cascade="all, delete-orphan"
    )

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "user_id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


class MSCIStandard(db.Model):
    __tablename__ = "msci_standards"

    id = db.Column(db.Integer, primary_key=True)
    version = db.Column(db.String(50), nullable=False)
    criteria = db.Column(db.JSON, default=dict)
    benchmark = db.Column(db.JSON, default=dict)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    key_issues = db.relationship("KeyIssue", backref="standard", lazy="dynamic")


class KeyIssue(db.Model):
    __tablename__ = "key_issues"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    pillar = db.Column(db.String(1), nullable=False, index=True)
    # Pillar: E, S, G
    description = db.Column(db.Text, default="")
    msci_weight = db.Column(db.Float, nullable=False, default=0.0)
    standard_id = db.Column(
        db.Integer, db.ForeignKey("msci_standards.id"), nullable=False
    )


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    project_name = db.Column(db.String(255), nullable=False)
    industry = db.Column(db.String(100), nullable=False)
    annual_revenue = db.Column(db.Float, nullable=True)
    # Annual revenue in million baht
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="PENDING")
    # Status: PENDING, PROCESSING, COMPLETED, FAILED
    submitted_at = db.Column(db.DateTime, default=_utcnow, index=True)

    data = db.relationship(
        "ProjectData", backref="project", lazy="dynamic", cascade="all, delete-orphan"
    )
    evaluation = db.relationship(
        "Evaluation", backref="project", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def display_status(self):
        """Evaluation outcome once there is one, otherwise the project status."""
        if self.evaluation and self.evaluation.status != "PENDING":
            return self.evaluation.status
        return self.status

    def to_dict(self, include_details=False):
        result = {
            "project_id": self.id,
            "project_name": self.project_name,
            "submitted_at": _iso(self.submitted_at),
            "industry": self.industry,
            "annual_revenue": self.annual_revenue,
            "status": self.status,
            "description": self.description,
            "user_id": self.user_id,
            "evaluation": (
                self.evaluation.to_dict(include_scores=include_details)
                if self.evaluation else None
            ),
        }
        if include_details:
            result["project_data"] = [
                d.to_dict() for d in self.data.order_by(ProjectData.id).all()
            ]
        return result


class ProjectData(db.Model):
    __tablename__ = "project_data"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True
    )
    issue_id = db.Column(db.Integer, db.ForeignKey("key_issues.id"), nullable=False)
    value = db.Column(db.Text, nullable=False)

    issue = db.relationship("KeyIssue")

    def to_dict(self):
        return {
            "data_id": self.id,
            "value": self.value,
            "project_id": self.project_id,
            "issue_id": self.issue_id,
            "issue_name": self.issue.name if self.issue else None,
            "pillar": self.issue.pillar if self.issue else None,
        }


class Evaluation(db.Model):
    __tablename__ = "evaluations"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id"), nullable=False, unique=True
    )
    overall_score = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(20), nullable=False, default="PENDING")
    # Status: PENDING, PASSED, FAILED
    created_at = db.Column(db.DateTime, default=_utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    pillar_scores = db.relationship(
        "PillarScore",
        backref="evaluation",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    @property
    def passed(self):
        return self.status == "PASSED"

    def ordered_pillar_scores(self):
        scores = {s.pillar_type: s for s in self.pillar_scores.all()}
        return [scores[p] for p in PILLARS if p in scores]

    def to_dict(self, include_scores=True):
        return {
            "evaluation_id": self.id,
            "overall_score": self.overall_score,
            "status": self.status,
            "project_id": self.project_id,
            "completed_at": _iso(self.completed_at),
            "pillar_scores": (
                [s.to_dict() for s in self.ordered_pillar_scores()]
                if include_scores else []
            ),
        }


class PillarScore(db.Model):
    __tablename__ = "pillar_scores"

    id = db.Column(db.Integer, primary_key=True)
    evaluation_id = db.Column(
        db.Integer, db.ForeignKey("evaluations.id"), nullable=False, index=True
    )
    pillar_type = db.Column(db.String(1), nullable=False)
    score = db.Column(db.Float, nullable=False, default=0.0)
    weight = db.Column(db.Float, nullable=False, default=0.0)
    pass_status = db.Column(db.Boolean, nullable=False, default=False)
    key_count = db.Column(db.Integer, nullable=False, default=0)
    total_weight = db.Column(db.Float, nullable=False, default=0.0)
    weighted_sum = db.Column(db.Float, nullable=False, default=0.0)
    standard_id = db.Column(db.Integer, db.ForeignKey("msci_standards.id"), nullable=True)

    def to_dict(self):
        return {
            "score_id": self.id,
            "pillar_type": self.pillar_type,
            "score": self.score,
            "weight": self.weight,
            "pass_status": self.pass_status,
            "key_count": self.key_count,
            "total_weight": self.total_weight,
            "weighted_sum": self.weighted_sum,
            "evaluation_id": self.evaluation_id,
            "standard_id": self.standard_id,
        }
