from portal.extensions import db
from .role import user_roles


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    position = db.Column(db.String(100), nullable=True)
    rg = db.Column(db.String(20), nullable=True)
    cpf = db.Column(db.String(11), nullable=True)
    mobile_phone = db.Column(db.String(20), nullable=True)
    company_id = db.Column(
        db.String(14), db.ForeignKey("companies.cnpj"), nullable=True
    )
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    active = db.Column(db.Boolean, nullable=False, default=True)
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )

    company = db.relationship("Company", backref=db.backref("users", lazy="dynamic"))
    roles = db.relationship("Role", secondary=user_roles, lazy="selectin")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, User):
            return self.id == other.id
        return False

    def __hash__(self):
        return hash(self.id)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "position": self.position,
            "rg": self.rg,
            "cpf": self.cpf,
            "mobile_phone": self.mobile_phone,
            "company_id": self.company_id,
            "company": self.company.name if self.company else None,
            "email_verified": self.email_verified,
            "active": self.active,
            "roles": sorted(role.name for role in self.roles),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return (
            f"User("
            f"id={self.id}, "
            f"email='{self.email}', "
            f"name='{self.name}', "
            f"company_id={self.company_id}"
            f")"
        )
