from portal.extensions import db


class AppLog(db.Model):
    __tablename__ = "app_logs"

    id = db.Column(db.Integer, primary_key=True)
    level = db.Column(db.String(10), nullable=False, index=True)
    action = db.Column(db.String(100), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    user_id = db.Column(db.Integer, nullable=True)
    meta = db.Column(db.JSON, nullable=True)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )

    def to_dict(self):
        return {
            "id": self.id,
            "level": self.level,
            "action": self.action,
            "message": self.message,
            "user_id": self.user_id,
            "meta": self.meta,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
