from portal.extensions import db


class Company(db.Model):
    __tablename__ = "companies"

    cnpj = db.Column(db.String(14), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    segment = db.Column(db.String(100), nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self):
        return {
            "cnpj": self.cnpj,
            "name": self.name,
            "segment": self.segment,
            "active": self.active,
        }

    def __repr__(self):
        return f"<Company cnpj={self.cnpj} name={self.name!r} active={self.active}>"
