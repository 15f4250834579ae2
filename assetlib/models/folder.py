from __future__ import annotations

from datetime import datetime

from assetlib.extensions import db


class Folder(db.Model):
    __tablename__ = "folders"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    parent_id = db.Column(
        db.Integer, db.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True
    )
    name = db.Column(db.String(160), nullable=False)
    created_at = db.Column(
        db.DateTime, default=datetime.utcnow, server_default=db.func.current_timestamp()
    )

    children = db.relationship(
        "Folder",
        backref=db.backref("parent", remote_side=[id]),
        cascade="all, delete-orphan",
        lazy=True,
    )

    __table_args__ = (
        db.Index("ix_folders_project_id", "project_id"),
        db.Index("ix_folders_parent_id", "parent_id"),
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "parent_id": self.parent_id,
            "name": self.name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
