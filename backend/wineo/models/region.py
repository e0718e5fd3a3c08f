from datetime import datetime

from wineo.extensions import db
from wineo.utils.slugs import new_id


class Region(db.Model):
    __tablename__ = "regions"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    slug = db.Column(db.String(120), nullable=False, unique=True, index=True)
    label = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def summary(self) -> dict:
        return {"id": self.id, "slug": self.slug, "label": self.label}

    def to_dict(self) -> dict:
        return {
            **self.summary(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
