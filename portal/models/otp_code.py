from portal.extensions import db


class OtpCode(db.Model):
    __tablename__ = "otp_codes"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), nullable=False)
    identifier = db.Column(db.String(255), nullable=False, index=True)
    purpose = db.Column(db.String(50), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    expires_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False)
    used = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )

    def __repr__(self):
        return f"<OtpCode identifier={self.identifier} purpose={self.purpose} used={self.used}>"
