from __future__ import annotations

from datetime import datetime

from assetlib.extensions import db

DEFAULT_PROJECT_COLOR = "#667eea"


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(180), nullable=False)
    description = db.Column(db.Text, nullable=True)
    color = db.Column(
        db.String(16), nullable=False, default=DEFAULT_PROJECT_COLOR,
        server_default=DEFAULT_PROJECT_COLOR,
    )
    created_at = db.Column(
        db.DateTime, default=datetime.utcnow, server_default=db.func.current_timestamp()
    )

    folders = db.relationship(
        "Folder", backref="project", cascade="all, delete-orphan", lazy=True
    )
    assets = db.relationship(
        "Asset", backref="project", cascade="all, delete-orphan", lazy=True
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
