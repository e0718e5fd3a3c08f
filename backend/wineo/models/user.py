from datetime import datetime

from werkzeug.security import generate_password_hash, check_password_hash

from wineo.extensions import db
from wineo.utils.slugs import new_id


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(120), nullable=False, default="")
    last_name = db.Column(db.String(120), nullable=False, default="")
    business_name = db.Column(db.String(200), nullable=False, default="")
    phone = db.Column(db.String(32), nullable=False, default="")

    # customer | admin
    role = db.Column(db.String(16), nullable=False, default="customer")
    # physical | business
    user_type = db.Column(db.String(16), nullable=False, default="physical")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, raw_password: str) -> None:
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password_hash(self.password_hash, raw_password)

    @property
    def is_admin(self) -> bool:
        return (self.role or "").strip().lower() == "admin"

    @property
    def display_name(self) -> str:
        if self.user_type == "business" and (self.business_name or "").strip():
            return self.business_name.strip()
        return " ".join(p for p in (self.first_name, self.last_name) if p).strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name or "",
            "lastName": self.last_name or "",
            "businessName": self.business_name or "",
            "phone": self.phone or "",
            "role": "admin" if self.is_admin else "customer",
            "userType": "business" if self.user_type == "business" else "physical",
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
