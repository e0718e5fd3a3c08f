from datetime import datetime

import sqlalchemy as sa

from wineo.extensions import db
from wineo.utils.promotion import NONE_RANK, PROMOTION_RANKS, get_effective_promotion_type
from wineo.utils.slugs import new_id

LISTING_TYPES = ("sell", "rent")
RENT_PERIODS = ("hour", "day", "week", "month")
CURRENCIES = ("GEL", "USD")
PRICE_TYPES = ("fixed", "negotiable")
LISTING_STATUSES = ("active", "sold", "rented", "expired")


class Listing(db.Model):
    __tablename__ = "listings"
    __table_args__ = (
        db.Index("ix_listings_status_type_category_created", "status", "type", "category_slug", "created_at"),
        db.Index("ix_listings_owner_status", "owner_id", "status"),
        db.Index("ix_listings_promotion", "promotion_type", "promotion_expires_at"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(220), nullable=False, unique=True, index=True)
    description = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(8), nullable=False, default="sell", index=True)

    # Embedded category snapshot, plus the optional normalized reference.
    category_name = db.Column(db.String(100), nullable=False)
    category_slug = db.Column(db.String(140), nullable=False, index=True)
    category_id = db.Column(db.String(32), db.ForeignKey("categories.id"), nullable=True, index=True)

    # [{"filterId": "...", "value": ...}]
    attributes = db.Column(db.JSON, nullable=False, default=list)

    price = db.Column(db.Float, nullable=False, default=0.0)
    currency = db.Column(db.String(3), nullable=False, default="GEL")
    price_type = db.Column(db.String(16), nullable=False, default="fixed")
    rent_period = db.Column(db.String(8), nullable=True)

    images = db.Column(db.JSON, nullable=False, default=list)
    thumbnail = db.Column(db.String(1024), nullable=True)
    specifications = db.Column(db.JSON, nullable=False, default=dict)

    location_region = db.Column(db.String(120), nullable=False, index=True)
    location_city = db.Column(db.String(120), nullable=False)

    owner_id = db.Column(db.String(32), db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    promotion_type = db.Column(db.String(16), nullable=False, default="none", server_default="none")
    promotion_expires_at = db.Column(db.DateTime, nullable=True)

    views = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    saves = db.Column(db.Integer, nullable=False, default=0, server_default="0")

    seo_title = db.Column(db.String(70), nullable=True)
    seo_description = db.Column(db.String(160), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = db.relationship("User", lazy="joined")

    @classmethod
    def promotion_rank_expression(cls, now: datetime):
        """SQL mirror of ``get_promotion_rank``."""
        live = cls.promotion_expires_at > now
        return sa.case(
            *[(sa.and_(cls.promotion_type == kind, live), rank) for kind, rank in PROMOTION_RANKS.items()],
            else_=NONE_RANK,
        )

    @classmethod
    def promotion_sort_key(cls, now: datetime):
        """ORDER BY clauses: live promotion rank ascending, then newest first."""
        return cls.promotion_rank_expression(now).asc(), cls.created_at.desc()

    def to_dict(self) -> dict:
        owner = self.owner
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "type": self.type,
            "category": {"name": self.category_name, "slug": self.category_slug},
            "categoryId": self.category_id,
            "attributes": list(self.attributes or []),
            "price": float(self.price or 0.0),
            "currency": self.currency,
            "priceType": self.price_type,
            "rentPeriod": self.rent_period,
            "images": list(self.images or []),
            "thumbnail": self.thumbnail,
            "specifications": dict(self.specifications or {}),
            "location": {"region": self.location_region, "city": self.location_city},
            "ownerId": self.owner_id,
            "ownerName": (owner.display_name or None) if owner is not None else None,
            "ownerType": owner.user_type if owner is not None else None,
            "status": self.status,
            "promotionType": self.promotion_type or "none",
            "promotionExpiresAt": self.promotion_expires_at.isoformat() if self.promotion_expires_at else None,
            "effectivePromotionType": get_effective_promotion_type(self),
            "views": int(self.views or 0),
            "saves": int(self.saves or 0),
            "seoTitle": self.seo_title,
            "seoDescription": self.seo_description,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
