from datetime import datetime

from wineo.extensions import db
from wineo.utils.slugs import new_id


class City(db.Model):
    __tablename__ = "cities"
    __table_args__ = (
        db.UniqueConstraint("region_id", "slug", name="uq_cities_region_slug"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    slug = db.Column(db.String(120), nullable=False)
    label = db.Column(db.String(100), nullable=False)
    region_id = db.Column(db.String(32), db.ForeignKey("regions.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    region = db.relationship("Region", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "label": self.label,
            "regionId": self.region_id,
            "region": self.region.summary() if self.region is not None else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
