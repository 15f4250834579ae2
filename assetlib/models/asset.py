from __future__ import annotations

from datetime import datetime

from assetlib.extensions import db


class Asset(db.Model):
    __tablename__ = "assets"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=True
    )
    folder_id = db.Column(
        db.Integer, db.ForeignKey("folders.id", ondelete="SET NULL"), nullable=True
    )
    name = db.Column(db.String(512), nullable=False)
    type = db.Column(db.String(128), nullable=False)
    size = db.Column(db.BigInteger, nullable=False)
    # Data URL (``data:<mime>;base64,...``), rendered and downloaded as-is.
    data = db.Column(db.Text, nullable=False)
    upload_date = db.Column(
        db.DateTime, default=datetime.utcnow, server_default=db.func.current_timestamp()
    )

    folder = db.relationship("Folder", backref=db.backref("assets", lazy=True), lazy=True)

    __table_args__ = (
        db.Index("ix_assets_project_id", "project_id"),
        db.Index("ix_assets_folder_id", "folder_id"),
        db.Index("ix_assets_upload_date", "upload_date"),
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "folder_id": self.folder_id,
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "data": self.data,
            "upload_date": self.upload_date.isoformat() if self.upload_date else None,
        }
