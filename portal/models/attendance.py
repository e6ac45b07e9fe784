from portal.extensions import db
from .enums import AttendanceMode, DEFAULT_PARTICIPANT_TYPE


class Attendance(db.Model):
    """One row of an event's attendance list.

    The attendee_* columns are a snapshot of the registrant's profile taken
    at registration time; later profile edits do not touch them.
    """

    __tablename__ = "attendance_list"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(
        db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    company_id = db.Column(db.String(14), nullable=True, index=True)
    company_segment = db.Column(db.String(100), nullable=True)
    attendee_full_name = db.Column(db.String(150), nullable=False)
    attendee_email = db.Column(db.String(255), nullable=False)
    attendee_position = db.Column(db.String(100), nullable=True)
    attendee_rg = db.Column(db.String(20), nullable=True)
    attendee_cpf = db.Column(db.String(11), nullable=True)
    mobile_phone = db.Column(db.String(20), nullable=True)
    attendance_mode = db.Column(
        db.Enum(AttendanceMode), nullable=False, default=AttendanceMode.IN_PERSON
    )
    participant_type = db.Column(
        db.String(20), nullable=False, default=DEFAULT_PARTICIPANT_TYPE.value
    )
    checked_in = db.Column(db.Boolean, nullable=False, default=False)
    check_in_date = db.Column(db.TIMESTAMP(timezone=True), nullable=True)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    event = db.relationship(
        "Event", backref=db.backref("attendance_list", lazy="dynamic")
    )
    user = db.relationship(
        "User", backref=db.backref("attendances", lazy="dynamic")
    )

    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uq_attendance_event_user"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "user_id": self.user_id,
            "company_id": self.company_id,
            "company_segment": self.company_segment,
            "attendee_full_name": self.attendee_full_name,
            "attendee_email": self.attendee_email,
            "attendee_position": self.attendee_position,
            "attendee_rg": self.attendee_rg,
            "attendee_cpf": self.attendee_cpf,
            "mobile_phone": self.mobile_phone,
            "attendance_mode": self.attendance_mode.value
            if self.attendance_mode
            else None,
            "participant_type": self.participant_type,
            "checked_in": self.checked_in,
            "check_in_date": self.check_in_date.isoformat()
            if self.check_in_date
            else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return (
            f"Attendance("
            f"id={self.id}, "
            f"event_id={self.event_id}, "
            f"user_id={self.user_id}, "
            f"company_id={self.company_id}, "
            f"attendance_mode={self.attendance_mode}, "
            f"checked_in={self.checked_in}"
            f")"
        )
