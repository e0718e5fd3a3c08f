from datetime import datetime

import sqlalchemy as sa

from wineo.extensions import db
from wineo.utils.slugs import new_id

FILTER_TYPES = ("select", "range", "checkbox", "number", "text")


class Filter(db.Model):
    __tablename__ = "filters"
    __table_args__ = (
        db.UniqueConstraint("category_id", "slug", name="uq_filters_category_slug"),
        db.Index("ix_filters_category_sort", "category_id", "sort_order"),
        db.Index("ix_filters_category_inherit", "category_id", "apply_to_children"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(140), nullable=False)
    type = db.Column(db.String(16), nullable=False)
    options = db.Column(db.JSON, nullable=True)
    unit = db.Column(db.String(20), nullable=False, default="")
    category_id = db.Column(db.String(32), db.ForeignKey("categories.id"), nullable=False)
    apply_to_children = db.Column(db.Boolean, nullable=False, default=False, server_default=sa.text("false"))
    is_required = db.Column(db.Boolean, nullable=False, default=False, server_default=sa.text("false"))
    sort_order = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    is_active = db.Column(db.Boolean, nullable=False, default=True, server_default=sa.text("true"), index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "type": self.type,
            "options": list(self.options) if self.options is not None else None,
            "unit": self.unit or "",
            "categoryId": self.category_id,
            "applyToChildren": bool(self.apply_to_children),
            "isRequired": bool(self.is_required),
            "sortOrder": int(self.sort_order or 0),
            "isActive": bool(self.is_active),
        }
