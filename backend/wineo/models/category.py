from datetime import datetime

import sqlalchemy as sa

from wineo.extensions import db
from wineo.utils.slugs import new_id


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        # parent_scope is parent_id, or "" for roots, so root slugs collide too.
        db.UniqueConstraint("parent_scope", "slug", name="uq_categories_parent_scope_slug"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(140), nullable=False, index=True)
    description = db.Column(db.String(500), nullable=False, default="")
    active = db.Column(db.Boolean, nullable=False, default=True, server_default=sa.text("true"), index=True)

    parent_id = db.Column(db.String(32), db.ForeignKey("categories.id"), nullable=True, index=True)
    parent_scope = db.Column(db.String(32), nullable=False, default="", server_default="")
    level = db.Column(db.Integer, nullable=False, default=0, server_default="0", index=True)
    # Ancestor ids, root first. Derived from the parent on every structural write.
    path = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name or "",
            "slug": self.slug or "",
            "description": self.description or "",
            "active": bool(self.active),
            "parentId": self.parent_id,
            "level": int(self.level or 0),
            "path": list(self.path or []),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
